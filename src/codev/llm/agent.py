# Agent mode: generate a small application from a description.
# Created: 2026-09-10
#
# The model returns an ApplicationPlan (structured output); we write its
# files under <base_dir>/<folder_name>/ and hand back the setup commands.
# Nothing is executed.

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field

from codev.llm.client import InferenceClient

logger = logging.getLogger(__name__)

AGENT_SYSTEM_PROMPT = """You are an expert software engineer that generates complete, working applications.
Return every file needed to run the project, with full contents (no placeholders).
Use a short kebab-case folder name. Paths are relative to that folder.
Include the shell commands needed to install dependencies and start the app."""

_FOLDER_NAME_RE = re.compile(r"[^a-zA-Z0-9._-]+")


class GeneratedFile(BaseModel):
    path: str = Field(description="File path relative to the application folder")
    content: str = Field(description="Complete file contents")


class ApplicationPlan(BaseModel):
    """Structured output requested from the model."""

    folder_name: str = Field(description="kebab-case folder name for the application")
    description: str = Field(default="", description="One-paragraph summary of the app")
    files: list[GeneratedFile] = Field(description="All files of the application")
    setup_commands: list[str] = Field(
        default_factory=list, description="Commands to install and run the app"
    )


@dataclass
class GenerationResult:
    success: bool
    folder_name: str
    app_dir: Path
    files: list[str] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)

    def summary(self) -> str:
        """Text stored as the assistant message for this turn."""
        return (
            f"Generated application: {self.folder_name}\n"
            f"Files created: {len(self.files)}\n"
            f"Location: {self.app_dir}\n\n"
            "Setup commands:\n" + "\n".join(self.commands)
        )


def safe_folder_name(name: str) -> str:
    cleaned = _FOLDER_NAME_RE.sub("-", name.strip()).strip("-.")
    return cleaned or "generated-app"


def write_application(plan: ApplicationPlan, base_dir: Path) -> GenerationResult:
    """Write the plan's files. Paths that escape the app folder are rejected.

    Raises:
        ValueError: a file path is absolute or points outside the app folder.
    """
    folder_name = safe_folder_name(plan.folder_name)
    app_dir = (base_dir / folder_name).resolve()

    targets: list[tuple[Path, str]] = []
    for generated in plan.files:
        relative = Path(generated.path)
        target = (app_dir / relative).resolve()
        if relative.is_absolute() or not target.is_relative_to(app_dir):
            raise ValueError(f"Refusing to write outside the application folder: {generated.path}")
        targets.append((target, generated.content))

    written: list[str] = []
    for target, content in targets:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        written.append(str(target.relative_to(app_dir)))
        logger.debug("Wrote %s", target)

    logger.info("Generated %d files in %s", len(written), app_dir)
    return GenerationResult(
        success=True,
        folder_name=folder_name,
        app_dir=app_dir,
        files=written,
        commands=list(plan.setup_commands),
    )


async def generate_application(
    description: str, client: InferenceClient, base_dir: Path
) -> GenerationResult:
    """Ask the model for an application and write it under ``base_dir``."""
    plan = await client.generate_structured(
        ApplicationPlan,
        f"Create this application:\n\n{description}",
        system=AGENT_SYSTEM_PROMPT,
    )
    return write_application(plan, base_dir)
