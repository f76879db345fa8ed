from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from zdp.exceptions import (
    AlreadyInCorrectDirectoryError,
    AlreadyInStateError,
    DocumentFormatError,
    DocumentNotFoundError,
    MissingStateFieldError,
    MoveFailureError,
    UnsupportedStateError,
)
from zdp.lifecycle import (
    ENVELOPE_KEYS,
    ChangeKind,
    IndexChange,
    IndexDocument,
    IndexEntry,
    LifecycleController,
    StateRegistry,
)
from zdp.repository import FakeRepository

from tests.conftest import Corpus, document_text, index_text

INTRO_ROW = ("0001", "Intro", "Draft", "2024-01-01")
INTRO_BULLET = ("0001", "Intro", "01-draft/0001-intro.md")


@pytest.fixture
def intro(corpus: Corpus) -> Path:
    return corpus.root / "01-draft" / "0001-intro.md"


class TestAddHeaders:
    def test_complete_envelope_is_left_alone(
        self, controller: LifecycleController, intro: Path
    ) -> None:
        report = controller.add_headers(intro)

        assert report.added == ()
        assert not report.changed
        assert intro.read_text(encoding="utf-8") == document_text()

    def test_infers_from_history(
        self, controller: LifecycleController, corpus: Corpus, fake_repo: FakeRepository
    ) -> None:
        path = corpus.write("01-draft/0002-plain.md", "# Plain\n\nBody text.\n")
        _ = fake_repo.add_commit(path, author="Grace", when=datetime(2023, 5, 1, tzinfo=UTC))
        _ = fake_repo.add_commit(path, author="Ada", when=datetime(2023, 6, 2, tzinfo=UTC))

        report = controller.add_headers(path)

        assert report.added == ENVELOPE_KEYS
        assert report.path == path
        assert path.read_text(encoding="utf-8") == document_text(
            "0002",
            "Plain",
            author="Grace",
            created="2023-05-01",
            updated="2023-06-02",
        )

    def test_missing_file(self, controller: LifecycleController, corpus: Corpus) -> None:
        with pytest.raises(DocumentNotFoundError):
            _ = controller.add_headers(corpus.root / "01-draft" / "nope.md")


class TestTransition:
    def test_moves_rewrites_and_reindexes(
        self,
        controller: LifecycleController,
        corpus: Corpus,
        fake_repo: FakeRepository,
        intro: Path,
    ) -> None:
        result = controller.transition(intro, "under review")

        destination = corpus.root / "02-under-review" / "0001-intro.md"
        assert result.source == intro
        assert result.destination == destination
        assert result.previous_state == "Draft"
        assert result.new_state == "Under Review"
        assert result.updated == "2025-03-14"
        assert result.headers is None

        assert not intro.exists()
        assert destination.read_text(encoding="utf-8") == document_text(
            state="Under Review", updated="2025-03-14"
        )
        assert fake_repo.moves == [(intro, destination)]

        index = IndexDocument.load(corpus.index)
        assert index.row_for("0001") == IndexEntry("0001", "Intro", "Under Review", "2025-03-14")
        assert index.section_names() == ["Under Review"]
        assert index.section_paths("Under Review") == ["02-under-review/0001-intro.md"]

    def test_accepts_relative_paths(
        self,
        controller: LifecycleController,
        corpus: Corpus,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(corpus.root)

        result = controller.transition(Path("01-draft/0001-intro.md"), "FINAL")

        assert result.destination == corpus.root / "06-final" / "0001-intro.md"

    def test_already_in_state(self, controller: LifecycleController, intro: Path) -> None:
        with pytest.raises(AlreadyInStateError, match='already in state "Draft"'):
            _ = controller.transition(intro, "draft")

        assert intro.read_text(encoding="utf-8") == document_text()

    def test_unsupported_state(self, controller: LifecycleController, intro: Path) -> None:
        with pytest.raises(UnsupportedStateError) as exc_info:
            _ = controller.transition(intro, "archived")

        assert exc_info.value.state == "archived"
        assert intro.read_text(encoding="utf-8") == document_text()

    def test_missing_document(self, controller: LifecycleController, corpus: Corpus) -> None:
        with pytest.raises(DocumentNotFoundError, match="File not found"):
            _ = controller.transition(corpus.root / "01-draft" / "0099-x.md", "final")

    def test_missing_index_leaves_document_untouched(
        self, controller: LifecycleController, corpus: Corpus, intro: Path
    ) -> None:
        corpus.index.unlink()

        with pytest.raises(DocumentNotFoundError):
            _ = controller.transition(intro, "final")

        assert intro.read_text(encoding="utf-8") == document_text()

    def test_missing_state_field(self, controller: LifecycleController, corpus: Corpus) -> None:
        path = corpus.write("01-draft/0002-x.md", "---\nnumber: 0002\n---\n\nBody\n")

        with pytest.raises(MissingStateFieldError):
            _ = controller.transition(path, "final")

    def test_adds_headers_when_envelope_missing(
        self, controller: LifecycleController, corpus: Corpus, fake_repo: FakeRepository
    ) -> None:
        path = corpus.write("01-draft/0002-plain.md", "# Plain\n\nBody text.\n")
        fake_repo.track(path)

        result = controller.transition(path, "final")

        assert result.headers is not None
        assert "number" in result.headers.added
        assert result.previous_state == "Draft"
        index = IndexDocument.load(corpus.index)
        assert index.row_for("0002") == IndexEntry("0002", "Plain", "Final", "2025-03-14")
        assert index.section_paths("Final") == ["06-final/0002-plain.md"]

    def test_move_failure_leaves_document_and_index_alone(
        self, controller: LifecycleController, corpus: Corpus, fake_repo: FakeRepository, intro: Path
    ) -> None:
        fake_repo.fail_moves = True
        before = corpus.read_index()
        document = intro.read_text(encoding="utf-8")

        with pytest.raises(MoveFailureError):
            _ = controller.transition(intro, "final")

        assert intro.exists()
        assert intro.read_text(encoding="utf-8") == document
        assert corpus.read_index() == before

    def test_works_without_a_logger(
        self, corpus: Corpus, fake_repo: FakeRepository, intro: Path
    ) -> None:
        controller = LifecycleController(corpus.root, StateRegistry(), fake_repo)

        result = controller.transition(intro, "final")

        assert result.destination == corpus.root / "06-final" / "0001-intro.md"

    def test_logs_each_step(
        self,
        make_controller: Callable[..., LifecycleController],
        mocker: MockerFixture,
        intro: Path,
    ) -> None:
        logger = mocker.Mock()
        controller = make_controller(logger=logger)

        _ = controller.transition(intro, "final")

        events = [call.args[0] for call in logger.info.call_args_list]
        assert events == ["document moved", "index updated"]


class TestSyncToHeader:
    def test_moves_to_header_state_directory(
        self, controller: LifecycleController, corpus: Corpus, intro: Path
    ) -> None:
        _ = corpus.write("01-draft/0001-intro.md", document_text(state="Final"))

        result = controller.sync_to_header(intro)

        destination = corpus.root / "06-final" / "0001-intro.md"
        assert result.destination == destination
        assert result.state == "Final"
        assert destination.read_text(encoding="utf-8") == document_text(state="Final")
        index = IndexDocument.load(corpus.index)
        assert index.row_for("0001") == IndexEntry("0001", "Intro", "Final", "2024-01-01")
        assert index.section_names() == ["Final"]

    def test_already_in_correct_directory(
        self, controller: LifecycleController, intro: Path
    ) -> None:
        with pytest.raises(AlreadyInCorrectDirectoryError) as exc_info:
            _ = controller.sync_to_header(intro)

        assert exc_info.value.state == "Draft"
        assert "correct directory" in str(exc_info.value)

    def test_unsupported_header_state(
        self, controller: LifecycleController, corpus: Corpus, intro: Path
    ) -> None:
        _ = corpus.write("01-draft/0001-intro.md", document_text(state="Parked"))

        with pytest.raises(UnsupportedStateError):
            _ = controller.sync_to_header(intro)

    def test_document_outside_state_directory(
        self, controller: LifecycleController, corpus: Corpus, fake_repo: FakeRepository
    ) -> None:
        path = corpus.write("0002-loose.md", document_text("0002", "Loose", "Accepted"))
        fake_repo.track(path)

        result = controller.sync_to_header(path)

        assert result.destination == corpus.root / "04-accepted" / "0002-loose.md"
        index = IndexDocument.load(corpus.index)
        assert index.section_paths("Accepted") == ["04-accepted/0002-loose.md"]
        assert index.row_for("0002") == IndexEntry("0002", "Loose", "Accepted", "2024-01-01")


class TestAddToIndex:
    def test_already_indexed(
        self, controller: LifecycleController, corpus: Corpus, intro: Path
    ) -> None:
        before = corpus.read_index()

        result = controller.add_to_index(intro)

        assert result.already_indexed
        assert result.path == "01-draft/0001-intro.md"
        assert corpus.read_index() == before

    def test_adds_row_and_bullet(self, controller: LifecycleController, corpus: Corpus) -> None:
        path = corpus.write("01-draft/0002-two.md", document_text("0002", "Two"))

        result = controller.add_to_index(path)

        assert result.added_row
        assert result.added_bullet
        assert result.number == "0002"
        assert corpus.read_index() == index_text(
            rows=[INTRO_ROW, ("0002", "Two", "Draft", "2024-01-01")],
            sections={"Draft": [INTRO_BULLET, ("0002", "Two", "01-draft/0002-two.md")]},
        )

    def test_canonicalizes_state_spelling(
        self, controller: LifecycleController, corpus: Corpus
    ) -> None:
        path = corpus.write(
            "02-under-review/0002-two.md", document_text("0002", "Two", "under_review")
        )

        _ = controller.add_to_index(path)

        index = IndexDocument.load(corpus.index)
        assert index.row_for("0002") == IndexEntry("0002", "Two", "Under Review", "2024-01-01")
        assert index.section_paths("Under Review") == ["02-under-review/0002-two.md"]

    def test_placeholder_number(self, controller: LifecycleController, corpus: Corpus) -> None:
        path = corpus.write("01-draft/0002-two.md", document_text("NNNN", "Two"))

        with pytest.raises(DocumentFormatError, match="no number"):
            _ = controller.add_to_index(path)

    def test_unknown_state(self, controller: LifecycleController, corpus: Corpus) -> None:
        path = corpus.write("01-draft/0002-two.md", document_text("0002", "Two", "Parked"))

        with pytest.raises(UnsupportedStateError):
            _ = controller.add_to_index(path)


class TestAddDocument:
    def test_full_onboarding_from_outside(
        self, controller: LifecycleController, corpus: Corpus, fake_repo: FakeRepository
    ) -> None:
        outside = corpus.root.parent / "outside"
        outside.mkdir()
        source = outside / "notes.md"
        _ = source.write_text("# Notes\n\nBody text.\n", encoding="utf-8")

        result = controller.add_document(source)

        final = corpus.root / "01-draft" / "0002-notes.md"
        assert result.path == final
        assert result.number == "0002"
        assert result.renamed_from == source
        assert result.moved_into_root
        assert result.moved_into_state == "01-draft"
        assert result.headers is not None
        assert result.headers.added == ENVELOPE_KEYS
        assert result.header_state_synced is None
        assert result.index.added_row
        assert result.index.added_bullet

        assert not source.exists()
        assert final.read_text(encoding="utf-8") == document_text(
            "0002",
            "Notes",
            author="Unknown",
            created="2025-03-14",
            updated="2025-03-14",
        )
        assert final in fake_repo.staged
        assert corpus.read_index() == index_text(
            rows=[INTRO_ROW, ("0002", "Notes", "Draft", "2025-03-14")],
            sections={"Draft": [INTRO_BULLET, ("0002", "Notes", "01-draft/0002-notes.md")]},
        )

    def test_syncs_header_state_to_directory(
        self, controller: LifecycleController, corpus: Corpus
    ) -> None:
        path = corpus.write("06-final/0005-five.md", document_text("0005", "Five", "Draft"))

        result = controller.add_document(path)

        assert result.path == path
        assert result.renamed_from is None
        assert not result.moved_into_root
        assert result.moved_into_state is None
        assert result.headers is None
        assert result.header_state_synced == "Final"
        assert path.read_text(encoding="utf-8") == document_text(
            "0005", "Five", "Final", updated="2025-03-14"
        )
        index = IndexDocument.load(corpus.index)
        assert index.row_for("0005") == IndexEntry("0005", "Five", "Final", "2025-03-14")
        assert index.section_paths("Final") == ["06-final/0005-five.md"]

    def test_repairs_placeholder_number(
        self, controller: LifecycleController, corpus: Corpus
    ) -> None:
        path = corpus.write(
            "01-draft/0003-tmpl.md",
            '---\nnumber: NNNN\ntitle: "Tmpl"\nstate: Draft\n---\n\n# Tmpl\n\nBody text.\n',
        )

        result = controller.add_document(path)

        assert result.number == "0003"
        assert result.headers is not None
        assert "number" in result.headers.added
        assert "title" not in result.headers.added
        assert result.index.added_row

    def test_already_indexed_document(
        self, controller: LifecycleController, intro: Path
    ) -> None:
        result = controller.add_document(intro)

        assert result.index.already_indexed
        assert result.headers is None

    def test_missing_file(self, controller: LifecycleController, corpus: Corpus) -> None:
        with pytest.raises(DocumentNotFoundError):
            _ = controller.add_document(corpus.root / "nope.md")


class TestResyncIndex:
    def test_consistent_corpus(self, controller: LifecycleController, corpus: Corpus) -> None:
        before = corpus.read_index()

        report = controller.resync_index()

        assert report.up_to_date
        assert not report.written
        assert report.changes == ()
        assert corpus.read_index() == before

    def test_directory_wins_over_header(
        self, controller: LifecycleController, corpus: Corpus, intro: Path
    ) -> None:
        _ = corpus.write("01-draft/0001-intro.md", document_text(state="Final"))

        report = controller.resync_index()

        assert report.changes == (
            IndexChange(
                ChangeKind.HEADER_SYNCED, "envelope", "0001-intro.md", before="Final", after="Draft"
            ),
            IndexChange(
                ChangeKind.UPDATED_DATE,
                "table",
                "0001-intro.md",
                before="2024-01-01",
                after="2025-03-14",
            ),
        )
        assert intro.read_text(encoding="utf-8") == document_text(updated="2025-03-14")
        assert report.written

    def test_adds_tracked_document(
        self, controller: LifecycleController, corpus: Corpus, fake_repo: FakeRepository
    ) -> None:
        path = corpus.write("06-final/0002-two.md", document_text("0002", "Two", "Final"))
        fake_repo.track(path)

        report = controller.resync_index()

        assert [(c.kind, c.scope) for c in report.changes] == [
            (ChangeKind.ADDED, "table"),
            (ChangeKind.ADDED, "Final"),
        ]
        assert corpus.read_index() == index_text(
            rows=[INTRO_ROW, ("0002", "Two", "Final", "2024-01-01")],
            sections={
                "Final": [("0002", "Two", "06-final/0002-two.md")],
                "Draft": [INTRO_BULLET],
            },
        )

    def test_untracked_document_only_gets_bullet(
        self, controller: LifecycleController, corpus: Corpus
    ) -> None:
        _ = corpus.write("06-final/0002-two.md", document_text("0002", "Two", "Final"))

        report = controller.resync_index()

        assert report.changes == (IndexChange(ChangeKind.ADDED, "Final", "0002-two.md"),)
        assert IndexDocument.load(corpus.index).row_for("0002") is None

    def test_removes_bullet_for_deleted_file(
        self, controller: LifecycleController, corpus: Corpus, intro: Path
    ) -> None:
        intro.unlink()

        report = controller.resync_index()

        assert report.changes == (IndexChange(ChangeKind.REMOVED, "Draft", "0001-intro.md"),)
        index = IndexDocument.load(corpus.index)
        assert index.section_names() == []
        assert index.row_for("0001") is not None

    def test_formatting_only(self, controller: LifecycleController, corpus: Corpus) -> None:
        normalized = corpus.read_index()
        _ = corpus.index.write_text(
            normalized.replace("### Draft\n\n", "### Draft\n\n\n\n"), encoding="utf-8"
        )

        report = controller.resync_index()

        assert report.content_changes == []
        assert report.formatting_changed
        assert report.written
        assert not report.up_to_date
        assert corpus.read_index() == normalized

    def test_unreadable_documents_are_warnings(
        self, controller: LifecycleController, corpus: Corpus, fake_repo: FakeRepository
    ) -> None:
        path = corpus.write("01-draft/0002-bad.md", "just text\n")
        fake_repo.track(path)

        report = controller.resync_index()

        assert [(c.scope, c.filename) for c in report.warnings] == [
            ("table", "0002-bad.md"),
            ("Draft", "0002-bad.md"),
        ]
        assert "Could not parse metadata envelope" in report.warnings[0].after
        assert report.up_to_date
        assert not report.written

    def test_second_run_is_quiet(
        self, controller: LifecycleController, corpus: Corpus, fake_repo: FakeRepository
    ) -> None:
        path = corpus.write("06-final/0002-two.md", document_text("0002", "Two", "Final"))
        fake_repo.track(path)
        _ = controller.resync_index()

        report = controller.resync_index()

        assert report.up_to_date
        assert not report.written

    def test_document_moved_by_hand(
        self, controller: LifecycleController, corpus: Corpus, intro: Path
    ) -> None:
        moved = corpus.root / "02-under-review" / "0001-intro.md"
        moved.parent.mkdir()
        _ = intro.rename(moved)

        report = controller.resync_index()

        assert [(c.kind, c.scope) for c in report.changes] == [
            (ChangeKind.HEADER_SYNCED, "envelope"),
            (ChangeKind.UPDATED_DATE, "table"),
            (ChangeKind.UPDATED_STATE, "table"),
            (ChangeKind.REMOVED, "Draft"),
            (ChangeKind.ADDED, "Under Review"),
        ]
        assert moved.read_text(encoding="utf-8") == document_text(
            state="Under Review", updated="2025-03-14"
        )
        index = IndexDocument.load(corpus.index)
        assert index.row_for("0001") == IndexEntry("0001", "Intro", "Under Review", "2025-03-14")
        assert index.section_names() == ["Under Review"]
        assert index.section_paths("Under Review") == ["02-under-review/0001-intro.md"]

        second = controller.resync_index()

        assert second.up_to_date
        assert not second.written

    def test_missing_index(self, controller: LifecycleController, corpus: Corpus) -> None:
        corpus.index.unlink()

        with pytest.raises(DocumentNotFoundError):
            _ = controller.resync_index()


class TestListByState:
    def test_groups_by_state(self, controller: LifecycleController, corpus: Corpus) -> None:
        _ = corpus.write("06-final/0002-two.md", document_text("0002", "Two", "Final"))
        _ = corpus.write("02-under-review/0003-three.md", document_text("0003", "Three"))

        listing = controller.list_by_state()

        assert listing == {
            "Draft": ["0001-intro.md"],
            "Final": ["0002-two.md"],
            "Under Review": ["0003-three.md"],
        }
        assert list(listing) == ["Draft", "Final", "Under Review"]

    def test_ignores_hidden_and_foreign_files(
        self, controller: LifecycleController, corpus: Corpus
    ) -> None:
        _ = corpus.write("01-draft/.0002-hidden.md", "x")
        _ = corpus.write("01-draft/notes.txt", "x")
        _ = corpus.write("99-other/0003-x.md", "x")

        assert controller.list_by_state() == {"Draft": ["0001-intro.md"]}

    def test_custom_suffix(
        self, make_controller: Callable[..., LifecycleController], corpus: Corpus
    ) -> None:
        _ = corpus.write("01-draft/notes.txt", "x")

        controller = make_controller(suffix=".txt")

        assert controller.list_by_state() == {"Draft": ["notes.txt"]}


class TestOptions:
    def test_custom_index_file(
        self, make_controller: Callable[..., LifecycleController], corpus: Corpus
    ) -> None:
        custom = corpus.write("INDEX.md", corpus.read_index())
        corpus.index.unlink()

        controller = make_controller(index_file="INDEX.md")
        report = controller.resync_index()

        assert controller.index_path == custom
        assert report.up_to_date
