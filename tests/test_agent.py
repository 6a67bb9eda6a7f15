# Tests for llm/agent.py and structured generation
# Created: 2026-09-22

from types import SimpleNamespace

import pytest

from codev.config import Settings
from codev.errors import InferenceError
from codev.llm.agent import (
    ApplicationPlan,
    GeneratedFile,
    generate_application,
    safe_folder_name,
    write_application,
)
from codev.llm.client import STRUCTURED_TOOL_NAME, InferenceClient


def make_plan(files, folder_name="todo-app", commands=("npm install", "npm start")):
    return ApplicationPlan(
        folder_name=folder_name,
        description="A todo app",
        files=[GeneratedFile(path=p, content=c) for p, c in files],
        setup_commands=list(commands),
    )


class FakeStructuredClient:
    """Stands in for InferenceClient.generate_structured."""

    def __init__(self, plan=None, error=None):
        self.plan = plan
        self.error = error
        self.prompts = []

    async def generate_structured(self, schema, prompt, *, system=None):
        self.prompts.append((schema, prompt, system))
        if self.error:
            raise self.error
        return self.plan


class TestSafeFolderName:
    def test_keeps_simple_names(self):
        assert safe_folder_name("todo-app") == "todo-app"

    def test_replaces_unsafe_characters(self):
        assert safe_folder_name("my app/../x") == "my-app-..-x"

    def test_empty_falls_back(self):
        assert safe_folder_name("  ") == "generated-app"
        assert safe_folder_name("../") == "generated-app"


class TestWriteApplication:
    def test_writes_nested_files(self, tmp_path):
        plan = make_plan([("index.html", "<h1>hi</h1>"), ("src/app.js", "console.log(1)")])
        result = write_application(plan, tmp_path)

        assert result.success
        assert result.app_dir == (tmp_path / "todo-app").resolve()
        assert (result.app_dir / "src" / "app.js").read_text() == "console.log(1)"
        assert sorted(result.files) == ["index.html", "src/app.js"]
        assert result.commands == ["npm install", "npm start"]

    def test_rejects_parent_traversal(self, tmp_path):
        plan = make_plan([("ok.txt", "fine"), ("../escape.txt", "bad")])
        with pytest.raises(ValueError):
            write_application(plan, tmp_path)
        # Nothing is written when any path is rejected
        assert not (tmp_path / "escape.txt").exists()
        assert not (tmp_path / "todo-app" / "ok.txt").exists()

    def test_rejects_absolute_path(self, tmp_path):
        plan = make_plan([("/etc/passwd", "bad")])
        with pytest.raises(ValueError):
            write_application(plan, tmp_path)

    def test_summary(self, tmp_path):
        result = write_application(make_plan([("a.txt", "a")]), tmp_path)
        summary = result.summary()
        assert summary.startswith("Generated application: todo-app")
        assert "Files created: 1" in summary
        assert "npm install\nnpm start" in summary


class TestGenerateApplication:
    async def test_generates_from_description(self, tmp_path):
        client = FakeStructuredClient(plan=make_plan([("main.py", "print('hi')")]))
        result = await generate_application("a hello world script", client, tmp_path)

        assert (result.app_dir / "main.py").exists()
        schema, prompt, system = client.prompts[0]
        assert schema is ApplicationPlan
        assert "a hello world script" in prompt
        assert system

    async def test_errors_propagate(self, tmp_path):
        client = FakeStructuredClient(error=InferenceError("quota"))
        with pytest.raises(InferenceError):
            await generate_application("anything at all", client, tmp_path)


class TestGenerateStructured:
    def _client(self, content):
        async def create(**params):
            self.params = params
            return SimpleNamespace(content=content)

        fake = SimpleNamespace(messages=SimpleNamespace(create=create))
        return InferenceClient(Settings(anthropic_api_key="sk-test"), client=fake)

    async def test_forces_tool_and_validates(self):
        block = SimpleNamespace(
            type="tool_use",
            name=STRUCTURED_TOOL_NAME,
            input={"folder_name": "x", "files": [{"path": "a", "content": "b"}]},
        )
        plan = await self._client([block]).generate_structured(ApplicationPlan, "make x")

        assert plan.folder_name == "x"
        assert plan.files[0].path == "a"
        assert self.params["tool_choice"] == {"type": "tool", "name": STRUCTURED_TOOL_NAME}

    async def test_invalid_output(self):
        block = SimpleNamespace(type="tool_use", name=STRUCTURED_TOOL_NAME, input={"files": "no"})
        with pytest.raises(InferenceError):
            await self._client([block]).generate_structured(ApplicationPlan, "make x")

    async def test_missing_tool_call(self):
        block = SimpleNamespace(type="text", text="sorry")
        with pytest.raises(InferenceError):
            await self._client([block]).generate_structured(ApplicationPlan, "make x")
