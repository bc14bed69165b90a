# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for candidate sandboxes: creation, cleanup, and path containment.
"""

from pathlib import Path

import pytest

from llmbench.evaluation.models import Candidate
from llmbench.execution.sandbox import (
    SandboxContext,
    candidate_file_name,
    cleanup_sandbox,
    create_sandbox,
    safe_file_name,
)


class TestCreateSandbox:
    def test_writes_files(self, tmp_path: Path) -> None:
        sandbox = create_sandbox({"a.py": "x = 1\n"}, base_dir=tmp_path)
        try:
            assert (sandbox / "a.py").read_text(encoding="utf-8") == "x = 1\n"
            assert sandbox.parent == tmp_path
        finally:
            cleanup_sandbox(sandbox)

    def test_escaping_path_is_rejected_and_nothing_left(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="escapes sandbox"):
            create_sandbox({"../evil.py": "boom"}, base_dir=tmp_path)

        assert not (tmp_path / "evil.py").exists()
        assert list(tmp_path.iterdir()) == []


class TestSandboxContext:
    def test_removed_after_block(self, tmp_path: Path) -> None:
        with SandboxContext({"a.js": "1"}, base_dir=tmp_path) as sandbox:
            assert (sandbox / "a.js").exists()
        assert not sandbox.exists()

    def test_removed_when_block_raises(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError):
            with SandboxContext({"a.js": "1"}, base_dir=tmp_path) as sandbox:
                raise RuntimeError("inside")
        assert not sandbox.exists()


class TestNames:
    def test_safe_file_name_strips_separators(self) -> None:
        assert "/" not in safe_file_name("../../etc/passwd")
        assert safe_file_name("...") == "candidate"

    def test_candidate_file_name_keeps_extension_and_identity(self) -> None:
        candidate = Candidate(code="", provider_id="openai", model_id="gpt-4.1")
        name = candidate_file_name(candidate, Path("src/sort.mjs"), 3)
        assert name == "003_sort.openai.gpt-4.1.mjs"

    def test_hostile_identity_stays_a_plain_name(self) -> None:
        candidate = Candidate(code="", provider_id="../x", model_id="a/b")
        name = candidate_file_name(candidate, Path("add.py"), 0)
        assert "/" not in name
        assert name.endswith(".py")
