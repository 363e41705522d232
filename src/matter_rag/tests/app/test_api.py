import pytest
from fastapi.testclient import TestClient

from matter_rag.app.access import MatterGrants
from matter_rag.app.api import create_app
from matter_rag.app.container import build_container
from matter_rag.config import GlobalConfig
from matter_rag.generation.llm_interface import BaseLLM
from matter_rag.pipelines.analysis_pipeline import CONTEXT_HEADER

GUARANTEE = (
    "The guarantor irrevocably agrees to indemnify the lender against all losses.\n\n"
    "This guarantee is governed by the laws of Bermuda and was executed on 1 May 2020."
)
AFFIDAVIT = (
    "I, John Smith, make this affidavit in support of the application.\n\n"
    "I was abroad throughout April 2020 and signed nothing before 3 May 2020."
)


class FakeLLM(BaseLLM):
    def __init__(self):
        self.calls = []

    def chat(self, system, messages, **kwargs):
        self.calls.append({"system": system, "messages": list(messages)})
        return "model answer"


def _client(access_policy=None, raw=None):
    llm = FakeLLM()
    kwargs = {"llm": llm}
    if access_policy is not None:
        kwargs["access_policy"] = access_policy
    container = build_container(GlobalConfig(raw or {}), **kwargs)
    return TestClient(create_app(container)), llm


def _ingest(client, name, text, doc_type=None, matter_id="m1", actor=None):
    headers = {"X-Actor": actor} if actor else {}
    body = {"matter_id": matter_id, "document_name": name, "text": text, "doc_type": doc_type}
    return client.post("/v1/documents", json=body, headers=headers)


def test_health():
    client, _ = _client()
    assert client.get("/health").json() == {"status": "ok"}


def test_ingest_and_list_documents():
    client, _ = _client()

    r = _ingest(client, "Guarantee", GUARANTEE, doc_type="Contract")
    assert r.status_code == 201
    body = r.json()
    assert body["chunks_persisted"] == 1
    assert body["document"]["doc_type"] == "Contract"
    assert body["document"]["char_count"] == len(GUARANTEE)

    _ingest(client, "Affidavit", AFFIDAVIT)

    docs = client.get("/v1/matters/m1/documents").json()["documents"]
    assert [(d["name"], d["doc_type"], d["chunk_count"]) for d in docs] == [
        ("Affidavit", "Other", 1),
        ("Guarantee", "Contract", 1),
    ]
    assert client.get("/v1/matters/other/documents").json() == {"documents": []}


def test_ingest_short_text_is_rejected():
    client, _ = _client()

    r = _ingest(client, "Scan.pdf", "   ")

    assert r.status_code == 400
    assert "OCR" in r.json()["detail"]["error"]
    assert client.get("/v1/matters/m1/documents").json() == {"documents": []}


def test_ingest_store_failure_reports_persisted_and_leaves_nothing(monkeypatch):
    client, _ = _client()
    store = client.app.state.container.passage_store

    def failing_insert(passages):
        raise ConnectionError("store unavailable")

    monkeypatch.setattr(store, "insert", failing_insert)

    r = _ingest(client, "Guarantee", GUARANTEE)

    assert r.status_code == 500
    assert r.json()["detail"]["persisted"] == 0
    assert client.get("/v1/matters/m1/documents").json() == {"documents": []}


def test_listed_char_count_matches_ingest_response():
    client, _ = _client()
    body = _ingest(client, "Guarantee", GUARANTEE).json()

    [listed] = client.get("/v1/matters/m1/documents").json()["documents"]

    assert listed == body["document"]


def test_ingest_persists_when_configured(tmp_path):
    path = tmp_path / "store" / "passages.json"
    client, _ = _client(raw={"passage_store": {"persist_path": str(path)}})

    assert _ingest(client, "Guarantee", GUARANTEE).status_code == 201
    assert path.exists()


def test_retrieve_is_scoped_to_matter():
    client, _ = _client()
    _ingest(client, "Guarantee", GUARANTEE)
    _ingest(client, "Other matter", AFFIDAVIT, matter_id="m2")

    r = client.post("/v1/retrieve", json={"matter_id": "m1", "query": "Does the guarantor indemnify the lender?"})

    assert r.status_code == 200
    passages = r.json()["passages"]
    assert [p["document_name"] for p in passages] == ["Guarantee"]


def test_delete_document():
    client, _ = _client()
    doc_id = _ingest(client, "Guarantee", GUARANTEE).json()["document"]["id"]

    assert client.delete("/v1/documents/unknown").status_code == 404

    r = client.delete(f"/v1/documents/{doc_id}")
    assert r.status_code == 200
    assert r.json() == {"success": True, "chunks_deleted": 1}
    assert client.get("/v1/matters/m1/documents").json() == {"documents": []}


def test_analyse_grounds_on_matter_passages():
    client, llm = _client()
    _ingest(client, "Guarantee", GUARANTEE, doc_type="Contract")

    r = client.post(
        "/v1/analyse",
        json={
            "matter_id": "m1",
            "matter_name": "Lender v Guarantor",
            "messages": [{"role": "user", "content": [{"type": "text", "text": "Is the guarantor liable?"}]}],
        },
    )

    assert r.status_code == 200
    assert r.json() == {"result": "model answer"}
    assert CONTEXT_HEADER in llm.calls[0]["system"]
    assert "--- Guarantee [Contract] ---" in llm.calls[0]["system"]
    assert llm.calls[0]["messages"] == [{"role": "user", "content": "Is the guarantor liable?"}]


def test_analyse_requires_messages():
    client, _ = _client()
    r = client.post("/v1/analyse", json={"messages": []})
    assert r.status_code == 400


def test_tools():
    client, llm = _client()
    _ingest(client, "Guarantee", GUARANTEE)

    r = client.post("/v1/tools", json={"tool": "chronology", "matter_id": "m1"})
    assert r.status_code == 200
    assert r.json() == {"result": "model answer"}
    assert "=== Guarantee [Other] ===" in llm.calls[0]["messages"][0]["content"]

    r = client.post("/v1/tools", json={"tool": "summarise", "matter_id": "m1"})
    assert r.status_code == 400
    assert r.json() == {"detail": {"error": "Unknown tool: summarise"}}

    r = client.post("/v1/tools", json={"tool": "proposition", "matter_id": "m1"})
    assert r.status_code == 400


@pytest.mark.parametrize(
    "actor, method, path, status, message",
    [
        (None, "get", "/v1/matters/m1/documents", 403, "Access denied"),
        ("bob", "get", "/v1/matters/m1/documents", 200, None),
        ("carol", "get", "/v1/matters/m1/documents", 403, "Access denied"),
    ],
)
def test_read_access(actor, method, path, status, message):
    client, _ = _client(MatterGrants({"m1": {"alice": "edit", "bob": "read"}}))
    headers = {"X-Actor": actor} if actor else {}

    r = getattr(client, method)(path, headers=headers)

    assert r.status_code == status
    if message:
        assert r.json()["detail"]["error"] == message


def test_edit_access_required_for_ingest_and_delete():
    client, _ = _client(MatterGrants({"m1": {"alice": "edit", "bob": "read"}}))

    r = _ingest(client, "Guarantee", GUARANTEE, actor="bob")
    assert r.status_code == 403
    assert r.json()["detail"]["error"] == "You do not have edit permission"

    doc_id = _ingest(client, "Guarantee", GUARANTEE, actor="alice").json()["document"]["id"]
    assert client.delete(f"/v1/documents/{doc_id}", headers={"X-Actor": "bob"}).status_code == 403
    assert client.delete(f"/v1/documents/{doc_id}", headers={"X-Actor": "alice"}).status_code == 200
