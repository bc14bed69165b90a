# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Finding variant files on disk.

Variants sit next to their baseline and are named
`<stem>.<provider>.<model><ext>`:

    src/add.py
    src/add.openai.gpt-4o.py
    src/add.anthropic.claude-sonnet.py
    src/add.openai.gpt-4.1.py        ← model ids may contain dots

The provider is everything up to the first dot after the stem, the model is
the rest. Files that don't split into both (like `add.test.js`) are not
variants.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class VariantFile:
    path: Path
    provider_id: str
    model_id: str

    @property
    def identity(self) -> str:
        return f"{self.provider_id}.{self.model_id}"


def parse_variant_name(baseline: Path, candidate: Path) -> VariantFile | None:
    """The variant described by `candidate`'s name, or None if it isn't one."""
    name = candidate.name
    prefix = f"{baseline.stem}."
    suffix = baseline.suffix

    if candidate == baseline or not name.startswith(prefix):
        return None
    if suffix and not name.endswith(suffix):
        return None

    middle = name[len(prefix):len(name) - len(suffix)] if suffix else name[len(prefix):]
    provider_id, _, model_id = middle.partition(".")
    if not provider_id or not model_id:
        return None
    return VariantFile(path=candidate, provider_id=provider_id, model_id=model_id)


def find_variant_files(baseline: Path) -> list[VariantFile]:
    """Every variant of `baseline` in its directory, sorted by file name."""
    variants = []
    for path in sorted(baseline.parent.glob(f"{baseline.stem}.*{baseline.suffix}")):
        if not path.is_file():
            continue
        variant = parse_variant_name(baseline, path)
        if variant is not None:
            variants.append(variant)
    return variants
