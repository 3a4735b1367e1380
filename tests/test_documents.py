import threading

from cashmere.documents import DocumentStore, is_supported_uri
from cashmere.models import Diagnostic
from cashmere.schemas import EditorDiagnostic

URI = "file:///repo/src/workflow.ts"

BROKEN = "async function wf(step: WorkflowStep) {\n  step.do('a', async () => {});\n}\n"
FIXED = "async function wf(step: WorkflowStep) {\n  await step.do('a', async () => {});\n}\n"


def _store():
    published = []
    return DocumentStore(published.append), published


def test_open_publishes_editor_diagnostics():
    store, published = _store()

    store.open(URI, BROKEN)

    (params,) = published
    assert params.uri == URI
    (diagnostic,) = params.diagnostics
    assert diagnostic.code == "await-step"
    assert diagnostic.source == "cashmere"
    assert diagnostic.severity == 1
    assert diagnostic.range.start.line == 1
    assert diagnostic.range.start.character == 2
    assert diagnostic.range.end.character == 3


def test_change_replaces_published_diagnostics():
    store, published = _store()

    store.open(URI, BROKEN)
    store.change(URI, FIXED)

    assert len(published) == 2
    assert published[-1].diagnostics == []
    assert store.text(URI) == FIXED


def test_save_relints_latest_text_and_close_discards_it():
    store, published = _store()

    store.open(URI, BROKEN)
    store.save(URI)
    assert len(published) == 2
    assert len(published[-1].diagnostics) == 1

    store.close(URI)
    assert store.text(URI) is None
    store.save(URI)
    assert len(published) == 2


def test_unsupported_documents_are_ignored():
    store, published = _store()

    store.open("file:///repo/README.md", BROKEN)

    assert published == []
    assert store.text("file:///repo/README.md") is None
    assert is_supported_uri("untitled:workflow.mjs")
    assert not is_supported_uri("file:///repo/notes.txt")


def test_editor_diagnostic_uses_zero_based_positions():
    converted = EditorDiagnostic.from_diagnostic(
        Diagnostic(file="a.ts", line=3, column=7, message="m", rule="nested-step")
    )

    assert converted.range.start.line == 2
    assert converted.range.start.character == 6
    assert converted.code == "nested-step"


def test_reopen_waits_for_in_flight_change():
    published = []
    first_publish_started = threading.Event()
    release_first_publish = threading.Event()

    def publish(params):
        if not first_publish_started.is_set():
            first_publish_started.set()
            release_first_publish.wait(timeout=5)
        published.append(params)

    store = DocumentStore(publish)
    stale = threading.Thread(target=store.change, args=(URI, BROKEN))
    stale.start()
    assert first_publish_started.wait(timeout=5)

    reopen = threading.Thread(target=lambda: (store.close(URI), store.open(URI, FIXED)))
    reopen.start()
    reopen.join(timeout=0.2)
    release_first_publish.set()
    stale.join(timeout=5)
    reopen.join(timeout=5)

    assert [len(params.diagnostics) for params in published] == [1, 0]
    assert store.text(URI) == FIXED
