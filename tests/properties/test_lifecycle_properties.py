from datetime import date
from string import ascii_letters, ascii_lowercase, digits

from hypothesis import given, strategies as st

from zdp.lifecycle import (
    DEFAULT_STATES,
    DocumentFields,
    IndexDocument,
    StateRegistry,
    TrackedDocument,
    full_resync,
    normalize_state,
    normalize_text,
    parse_envelope,
    update_envelope,
)

from tests.conftest import index_text

# Lines an index is built from: blanks, headers, bullets and prose.
index_line = st.sampled_from(
    [
        "",
        "",
        "## Documents by State",
        "### Draft",
        "### Final",
        "- [0001 - Intro](01-draft/0001-intro.md)",
        "- [0002 - Plan](06-final/0002-plan.md)",
        "| 0001 | Intro | Draft | 2024-01-01 |",
        "Some prose.",
    ]
)

word = st.text(alphabet=ascii_letters, min_size=1, max_size=8)
separator = st.sampled_from([" ", "-", "_", "  ", " - ", "__"])
display_name = st.sampled_from([state.display for state in DEFAULT_STATES])

envelope_key = st.from_regex(r"[a-z][a-z-]{0,10}", fullmatch=True).filter(
    lambda key: key not in {"state", "updated"}
)
envelope_value = st.text(alphabet=ascii_letters + digits + " .,", max_size=20)
envelope_line = st.builds(lambda k, v: f"{k}: {v}", envelope_key, envelope_value)


@st.composite
def spellings(draw: st.DrawFn) -> tuple[list[str], str]:
    words = draw(st.lists(word, min_size=1, max_size=4))
    seps = draw(st.lists(separator, min_size=len(words) - 1, max_size=len(words) - 1))
    text = words[0] + "".join(sep + w for sep, w in zip(seps, words[1:], strict=True))
    padded = draw(st.sampled_from(["", " "])) + text + draw(st.sampled_from(["", " "]))
    return words, padded


@given(lines=st.lists(index_line, max_size=30))
def test_normalize_text_is_idempotent(lines: list[str]) -> None:
    once = normalize_text("\n".join(lines))
    assert normalize_text(once) == once


@given(lines=st.lists(index_line, max_size=30))
def test_normalize_text_keeps_non_blank_lines_in_order(lines: list[str]) -> None:
    normalized = normalize_text("\n".join(lines)).split("\n")
    assert [line for line in normalized if line] == [line for line in lines if line]


@given(spelling=spellings())
def test_normalize_state_ignores_case_and_separators(
    spelling: tuple[list[str], str],
) -> None:
    words, text = spelling
    assert normalize_state(text) == " ".join(w.lower() for w in words)
    assert normalize_state(text.upper()) == normalize_state(text.lower())


@given(display=display_name, sep=separator, upper=st.booleans())
def test_every_spelling_resolves_to_one_directory(
    display: str, sep: str, upper: bool
) -> None:
    registry = StateRegistry()
    spelled = sep.join(display.split(" "))
    spelled = spelled.upper() if upper else spelled.lower()
    assert registry.resolve_directory(spelled) == registry.resolve_directory(display)


@given(
    before=st.lists(envelope_line, max_size=4),
    after=st.lists(envelope_line, max_size=4),
    body=st.text(max_size=200),
    new_state=display_name,
    today=st.dates(min_value=date(2000, 1, 1), max_value=date(2099, 12, 31)),
)
def test_update_envelope_changes_only_state_and_updated(  # noqa: PLR0913
    before: list[str],
    after: list[str],
    body: str,
    new_state: str,
    today: date,
) -> None:
    def document(state: str, updated: str) -> str:
        lines = [*before, f"state: {state}", f"updated: {updated}", *after]
        return "---\n" + "\n".join(lines) + "\n---\n" + body

    original = document("Draft", "2024-01-01")

    updated = update_envelope(original, new_state, today=today)

    assert updated == document(new_state, today.isoformat())
    assert parse_envelope(updated)["state"] == new_state


@given(
    numbers=st.lists(
        st.integers(min_value=1, max_value=9999), min_size=1, max_size=12, unique=True
    )
)
def test_section_bullets_stay_in_number_order(numbers: list[int]) -> None:
    index = IndexDocument.parse(index_text())
    for number in numbers:
        name = f"{number:04d}"
        _ = index.add_to_section(name, f"Doc {name}", f"01-draft/{name}-doc.md", "Draft")

    expected = [f"01-draft/{number:04d}-doc.md" for number in sorted(numbers)]
    assert index.section_paths("Draft") == expected

    reparsed = IndexDocument.parse(index.render())
    assert reparsed.section_paths("Draft") == expected


@given(word=st.text(alphabet=ascii_lowercase, min_size=1, max_size=12))
def test_unregistered_words_are_unsupported(word: str) -> None:
    registry = StateRegistry()
    known = {normalize_state(state.display) for state in DEFAULT_STATES}
    assert registry.is_supported(word) == (word in known)


@given(
    placements=st.dictionaries(
        st.integers(min_value=1, max_value=99), display_name, min_size=1, max_size=8
    ),
    seeded=st.booleans(),
)
def test_full_resync_twice_makes_no_further_edits(
    placements: dict[int, str], seeded: bool
) -> None:
    registry = StateRegistry()
    rows = [("0001", "Old", "Draft", "2020-01-01")] if seeded else []
    index = IndexDocument.parse(index_text(rows=rows))
    on_disk: dict[str, list[TrackedDocument]] = {}
    for number, display in placements.items():
        name = f"{number:04d}"
        doc = TrackedDocument(
            f"{registry.resolve_directory(display)}/{name}-doc.md",
            DocumentFields(name, f"Doc {name}", display, "2024-01-01"),
        )
        on_disk.setdefault(display, []).append(doc)
    tracked = [doc for documents in on_disk.values() for doc in documents]

    _ = full_resync(index, tracked, on_disk, registry)
    settled = index.render()

    assert full_resync(index, tracked, on_disk, registry) == []
    assert index.render() == settled
