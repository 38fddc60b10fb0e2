"""
Starter project generator.

``step-sdk-init [folder]`` writes a small step project: a pyproject, one
simple step with an injected dependency, the entry module that hands the
step to the registry, and a test for the step.
"""

import argparse
import re
import subprocess
import sys
from pathlib import Path
from string import Template
from typing import Dict, List, Optional, Union

from step_sdk.logger import get_logger
from step_sdk.version import __version__


logger = get_logger(__name__)

DEFAULT_FOLDER = "step-registry"


PYPROJECT_TEMPLATE = Template('''[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "$project"
version = "0.1.0"
requires-python = ">=3.9"
dependencies = [
    "step-sdk>=$sdk_version",
    "pydantic>=2.0.0",
]

[project.optional-dependencies]
dev = [
    "pytest>=7.4.0",
]

[tool.setuptools.packages.find]
include = ["$package*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
''')

README_TEMPLATE = Template('''# $project

Steps for the deployment host, built on step-sdk.

```bash
pip install -e ".[dev]"
pytest
python -m $package.main --input '{"job": "SYNTHESIZE-METADATA"}' --output /tmp/step-output.json
```
''')

PACKAGE_INIT_TEMPLATE = Template('''"""$project steps."""
''')

DEPLOYMENT_SERVICE_TEMPLATE = Template('''"""Example dependency injected into a step."""

import time
from typing import Dict, Optional, Protocol


class DeploymentService(Protocol):
    def deploy(self, target: str, version: Optional[str] = None) -> Dict[str, str]:
        ...


class RealDeploymentService:
    """Simulates a deployment."""

    def deploy(self, target: str, version: Optional[str] = None) -> Dict[str, str]:
        return {"deploymentId": f"deploy-{int(time.time() * 1000)}"}
''')

STEPS_INIT_TEMPLATE = Template('''from $package.steps.my_first_step import MyFirstStep

__all__ = ["MyFirstStep"]
''')

MY_FIRST_STEP_TEMPLATE = Template('''from typing import Optional

from pydantic import BaseModel, Field

from step_sdk import SimpleStep, StepOutputs, step

from $package.deployment_service import DeploymentService, RealDeploymentService


class DeployParams(BaseModel):
    target: str = Field(description="A target")
    version: Optional[str] = None


@step(
    name="Custom Deployment Action",
    type="CUSTOM:SCRIPT:DEPLOY",
    schema=DeployParams,
)
class MyFirstStep(SimpleStep):
    def __init__(self, deployment_service: Optional[DeploymentService] = None):
        self.deployment_service = deployment_service or RealDeploymentService()

    def run(self, params: DeployParams, approval=None):
        self.logger.info(f"Deploying with params: {params.model_dump_json()}")

        result = self.deployment_service.deploy(params.target, params.version)

        self.logger.info(f"Deployment completed: {result['deploymentId']}")

        return StepOutputs.success(
            {
                "deploymentId": result["deploymentId"],
                "target": params.target,
                "version": params.version,
            }
        )
''')

MAIN_TEMPLATE = Template('''import sys

from step_sdk import run

from $package.deployment_service import RealDeploymentService
from $package.steps import MyFirstStep


def main() -> int:
    deployment_service = RealDeploymentService()
    return run([MyFirstStep(deployment_service)])


if __name__ == "__main__":
    sys.exit(main())
''')

TEST_MY_FIRST_STEP_TEMPLATE = Template('''from unittest.mock import Mock

from $package.steps.my_first_step import DeployParams, MyFirstStep


class FakeDeploymentService:
    def __init__(self):
        self.calls = []

    def deploy(self, target, version=None):
        self.calls.append((target, version))
        return {"deploymentId": f"mock-deploy-{target}-{version or 'latest'}"}


class TestMyFirstStep:
    def setup_method(self):
        self.service = FakeDeploymentService()
        self.step = MyFirstStep(self.service)

    def test_run_with_version(self):
        result = self.step.run(DeployParams(target="production", version="1.0.0"))

        assert result.status == "SUCCESS"
        assert result.data == {
            "deploymentId": "mock-deploy-production-1.0.0",
            "target": "production",
            "version": "1.0.0",
        }

    def test_run_without_version(self):
        result = self.step.run(DeployParams(target="staging"))

        assert result.status == "SUCCESS"
        assert result.data["deploymentId"] == "mock-deploy-staging-latest"
        assert result.data["version"] is None

    def test_calls_deployment_service(self):
        self.step.run(DeployParams(target="development", version="2.0.0"))

        assert self.service.calls == [("development", "2.0.0")]

    def test_logs_deployment(self):
        step_logger = Mock()
        self.step.set_logger(step_logger)

        self.step.run(DeployParams(target="production", version="3.0.0"))

        step_logger.info.assert_any_call(
            "Deployment completed: mock-deploy-production-3.0.0"
        )
''')


def package_name_for(folder_name: str) -> str:
    """
    Derive an importable package name from a folder name.

    "step-registry" -> "step_registry", "42 steps" -> "steps_42_steps"
    """
    name = re.sub(r"[^0-9a-zA-Z_]", "_", folder_name).strip("_").lower()
    if not name:
        return "step_registry"
    if name[0].isdigit():
        name = f"steps_{name}"
    return name


def render_project(folder_name: str) -> Dict[str, str]:
    """
    Render every file of a starter project.

    Args:
        folder_name: Name of the project folder

    Returns:
        Mapping of relative path to file content
    """
    package = package_name_for(folder_name)
    values = {"project": folder_name, "package": package, "sdk_version": __version__}

    return {
        "pyproject.toml": PYPROJECT_TEMPLATE.substitute(values),
        "README.md": README_TEMPLATE.substitute(values),
        f"{package}/__init__.py": PACKAGE_INIT_TEMPLATE.substitute(values),
        f"{package}/deployment_service.py": DEPLOYMENT_SERVICE_TEMPLATE.substitute(values),
        f"{package}/steps/__init__.py": STEPS_INIT_TEMPLATE.substitute(values),
        f"{package}/steps/my_first_step.py": MY_FIRST_STEP_TEMPLATE.substitute(values),
        f"{package}/main.py": MAIN_TEMPLATE.substitute(values),
        "tests/steps/test_my_first_step.py": TEST_MY_FIRST_STEP_TEMPLATE.substitute(values),
    }


def create_project(
    folder: str = DEFAULT_FOLDER,
    base_dir: Optional[Union[str, Path]] = None,
    force: bool = False,
    install: bool = False,
) -> List[Path]:
    """
    Write a starter project.

    Args:
        folder: Project folder name, created under ``base_dir``
        base_dir: Parent directory, defaults to the current directory
        force: Overwrite files that already exist
        install: Run ``pip install -e .[dev]`` in the new project

    Returns:
        Paths of the files written

    Raises:
        subprocess.CalledProcessError: If the install fails
    """
    project_dir = Path(base_dir or Path.cwd()) / folder
    print(f"Creating {folder} folder...")
    project_dir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    for relative_path, content in render_project(project_dir.name).items():
        path = project_dir / relative_path
        if path.exists() and not force:
            logger.warning("Skipping existing file", path=str(path))
            print(f"Skipping {relative_path} (already exists)")
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        print(f"Creating {relative_path}...")
        path.write_text(content, encoding="utf-8")
        written.append(path)

    if install:
        print("Installing dependencies...")
        subprocess.run(
            [sys.executable, "-m", "pip", "install", "-e", ".[dev]"],
            cwd=project_dir,
            check=True,
        )

    package = package_name_for(project_dir.name)
    print(f"\nStep registry created successfully in '{folder}'!")
    print("\nNext steps:")
    print(f"  cd {folder}")
    if not install:
        print('  pip install -e ".[dev]"')
    print("  pytest")
    print(f"  python -m {package}.main --input '{{\"job\": \"SYNTHESIZE-METADATA\"}}'")

    return written


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="step-sdk-init",
        description="Create a starter step project",
    )
    parser.add_argument(
        "folder",
        nargs="?",
        default=DEFAULT_FOLDER,
        help=f"Project folder to create (default: {DEFAULT_FOLDER})",
    )
    parser.add_argument(
        "--force", action="store_true", help="Overwrite files that already exist"
    )
    parser.add_argument(
        "--install",
        action="store_true",
        help="Install the new project and its dev dependencies with pip",
    )
    return parser


def main(args=None) -> int:
    """
    Console script entry point.

    Args:
        args: Command line arguments (for tests)

    Returns:
        int: Exit code
    """
    parsed_args = create_parser().parse_args(args)

    try:
        create_project(parsed_args.folder, force=parsed_args.force, install=parsed_args.install)
    except subprocess.CalledProcessError as e:
        logger.error("Dependency installation failed", error=str(e))
        print(f"Error: dependency installation failed ({e})", file=sys.stderr)
        return 1
    except OSError as e:
        logger.error("Project creation failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
