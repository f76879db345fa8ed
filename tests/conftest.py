"""Shared test fixtures for zdp tests."""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import pytest
from rich.console import Console

from zdp.lifecycle import LifecycleController, StateRegistry
from zdp.repository import FakeRepository

TODAY = date(2025, 3, 14)

IndexRow = tuple[str, str, str, str]
SectionBullet = tuple[str, str, str]


def document_text(  # noqa: PLR0913
    number: str = "0001",
    title: str = "Intro",
    state: str = "Draft",
    *,
    updated: str = "2024-01-01",
    created: str = "2024-01-01",
    author: str = "Ada Lovelace",
    body: str = "",
) -> str:
    """Build a document with a complete envelope."""
    return (
        "---\n"
        f"number: {number}\n"
        f'title: "{title}"\n'
        f"author: {author}\n"
        f"created: {created}\n"
        f"updated: {updated}\n"
        f"state: {state}\n"
        "supersedes: None\n"
        "superseded-by: None\n"
        "---\n"
        "\n"
        f"# {title}\n"
        "\n"
        f"{body or 'Body text.'}\n"
    )


def index_text(
    rows: Sequence[IndexRow] = (),
    sections: Mapping[str, Sequence[SectionBullet]] | None = None,
) -> str:
    """Build an aggregate index whose formatting is already normalized.

    Args:
        rows: ``(number, title, state, updated)`` table rows.
        sections: Display name to ``(number, title, path)`` bullets.
    """
    lines = [
        "# Document Index",
        "",
        "| Number | Title | State | Updated |",
        "|--------|-------|-------|---------|",
    ]
    lines.extend(f"| {n} | {t} | {s} | {u} |" for n, t, s, u in rows)
    lines.extend(["", "## Documents by State"])
    for display, bullets in (sections or {}).items():
        lines.extend(["", f"### {display}", ""])
        lines.extend(f"- [{n} - {t}]({p})" for n, t, p in bullets)
    lines.append("")
    return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class Corpus:
    """A document corpus in a temporary directory."""

    root: Path
    index: Path

    def write(self, relative: str, content: str) -> Path:
        """Write a file below the corpus root, creating directories."""
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_text(content, encoding="utf-8")
        return path

    def read_index(self) -> str:
        return self.index.read_text(encoding="utf-8")


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


@pytest.fixture
def corpus(tmp_path: Path) -> Corpus:
    """Create a corpus root holding one draft document and its index.

    Structure:
        tmp_path/corpus/
            00-index.md
            01-draft/
                0001-intro.md
    """
    root = tmp_path.resolve() / "corpus"
    root.mkdir()
    index = root / "00-index.md"
    _ = index.write_text(
        index_text(
            rows=[("0001", "Intro", "Draft", "2024-01-01")],
            sections={"Draft": [("0001", "Intro", "01-draft/0001-intro.md")]},
        ),
        encoding="utf-8",
    )
    made = Corpus(root=root, index=index)
    _ = made.write("01-draft/0001-intro.md", document_text())
    return made


@pytest.fixture
def registry() -> StateRegistry:
    return StateRegistry()


@pytest.fixture
def fake_repo(corpus: Corpus) -> FakeRepository:
    """Fake provider tracking every document already in the corpus."""
    repo = FakeRepository(root=corpus.root)
    repo.track(corpus.root / "01-draft" / "0001-intro.md")
    return repo


@pytest.fixture
def controller(
    corpus: Corpus, registry: StateRegistry, fake_repo: FakeRepository
) -> LifecycleController:
    return LifecycleController(corpus.root, registry, fake_repo, today=lambda: TODAY)


@pytest.fixture
def make_controller(
    corpus: Corpus, registry: StateRegistry, fake_repo: FakeRepository
) -> Callable[..., LifecycleController]:
    """Return a factory for controllers with custom options."""

    def _make(**kwargs: object) -> LifecycleController:
        options: dict[str, object] = {"today": lambda: TODAY}
        options.update(kwargs)
        return LifecycleController(corpus.root, registry, fake_repo, **options)  # pyright: ignore[reportArgumentType]

    return _make
