# matter_rag/app/api.py
from __future__ import annotations

import logging
import os
from typing import Any, Callable, Optional, Union

from fastapi import FastAPI, Header, HTTPException
from pydantic import BaseModel, Field

from matter_rag.app.access import EDIT, READ
from matter_rag.app.container import MatterRAGContainer, build_container
from matter_rag.common import (
    Document,
    InputError,
    MatterRAGError,
    Passage,
    StoreWriteError,
    UnknownToolError,
)
from matter_rag.config import GlobalConfig

logger = logging.getLogger("matter_rag.api")

DEFAULT_CONFIG_PATH = "/app/config/config.yaml"


class DocumentIn(BaseModel):
    matter_id: str = Field(min_length=1)
    document_name: str = Field(min_length=1)
    text: str
    doc_type: Optional[str] = None


class DocumentOut(BaseModel):
    id: str
    matter_id: str
    name: str
    doc_type: str
    char_count: int
    chunk_count: int


class IngestResponse(BaseModel):
    document: DocumentOut
    chunks_persisted: int


class DocumentListResponse(BaseModel):
    documents: list[DocumentOut] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    success: bool
    chunks_deleted: int


class RetrieveRequest(BaseModel):
    matter_id: str = Field(min_length=1)
    query: str
    limit: Optional[int] = Field(default=None, gt=0)


class PassageOut(BaseModel):
    id: str
    document_id: str
    document_name: str
    doc_type: str
    chunk_index: int
    content: str


class RetrieveResponse(BaseModel):
    passages: list[PassageOut] = Field(default_factory=list)


class ChatMessage(BaseModel):
    role: str
    content: Union[str, list[dict[str, Any]], None] = ""


class AnalyseRequest(BaseModel):
    messages: list[ChatMessage]
    matter_id: Optional[str] = None
    matter_name: Optional[str] = None
    jurisdiction: Optional[str] = None
    query_type: Optional[str] = None
    focus_areas: Optional[list[str]] = None


class ToolRequestIn(BaseModel):
    tool: str = Field(min_length=1)
    matter_id: str = Field(min_length=1)
    matter_name: Optional[str] = None
    matter_nature: Optional[str] = None
    matter_issues: Optional[str] = None
    jurisdiction: Optional[str] = None
    anchor_doc_names: Optional[list[str]] = None
    instructions: Optional[str] = None


class ResultResponse(BaseModel):
    result: str


def _document_out(doc: Document) -> DocumentOut:
    return DocumentOut(
        id=doc.id,
        matter_id=doc.matter_id,
        name=doc.name,
        doc_type=doc.doc_type,
        char_count=doc.char_count,
        chunk_count=doc.chunk_count,
    )


def _passage_out(p: Passage) -> PassageOut:
    return PassageOut(
        id=p.id,
        document_id=p.document_id,
        document_name=p.document_name,
        doc_type=p.doc_type,
        chunk_index=p.chunk_index,
        content=p.content,
    )


def _call(route: str, fn: Callable[[], Any]) -> Any:
    """Run an endpoint body, mapping library errors to HTTP responses."""
    try:
        return fn()
    except HTTPException:
        raise
    except (InputError, UnknownToolError) as e:
        raise HTTPException(status_code=400, detail={"error": str(e)})
    except StoreWriteError as e:
        logger.exception("Store write failed while handling %s", route)
        raise HTTPException(status_code=500, detail={"error": str(e), "persisted": e.persisted})
    except MatterRAGError as e:
        logger.exception("Error while handling %s", route)
        raise HTTPException(status_code=500, detail={"error": f"{type(e).__name__}: {e}"})
    except Exception as e:
        logger.exception("Unexpected error while handling %s", route)
        raise HTTPException(status_code=500, detail={"error": f"{type(e).__name__}: {e}"})


def create_app(container: MatterRAGContainer | None = None) -> FastAPI:
    """Build the HTTP application.

    Parameters
    ----------
    container : MatterRAGContainer or None, optional
        Pre-built container. If omitted, one is built at startup from the
        config file named by ``MATTER_RAG_CONFIG``.
    """
    app = FastAPI(title="Matter RAG API", version="0.1.0")
    app.state.container = container

    @app.on_event("startup")
    def startup():
        if app.state.container is None:
            cfg_path = os.environ.get("MATTER_RAG_CONFIG", DEFAULT_CONFIG_PATH)
            app.state.container = build_container(GlobalConfig.load(cfg_path))

    def _container() -> MatterRAGContainer:
        return app.state.container

    def _require(actor: Optional[str], matter_id: str, action: str) -> None:
        if not _container().access_policy(actor, matter_id, action):
            logger.info("Access denied: actor=%s matter=%s action=%s", actor, matter_id, action)
            message = "You do not have edit permission" if action == EDIT else "Access denied"
            raise HTTPException(status_code=403, detail={"error": message})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/v1/documents", response_model=IngestResponse, status_code=201)
    def ingest(req: DocumentIn, x_actor: Optional[str] = Header(default=None)):
        _require(x_actor, req.matter_id, EDIT)

        def body():
            c = _container()
            result = c.ingestor.ingest(req.matter_id, req.document_name, req.text, doc_type=req.doc_type)
            c.persist()
            return IngestResponse(
                document=_document_out(result.document),
                chunks_persisted=result.chunks_persisted,
            )
        return _call("/v1/documents", body)

    @app.delete("/v1/documents/{document_id}", response_model=DeleteResponse)
    def delete_document(document_id: str, x_actor: Optional[str] = Header(default=None)):
        store = _container().passage_store
        passages = store.fetch_document(document_id)
        if not passages:
            raise HTTPException(status_code=404, detail={"error": "Document not found"})
        _require(x_actor, passages[0].matter_id, EDIT)

        def body():
            removed = store.delete_document(document_id)
            _container().persist()
            return DeleteResponse(success=True, chunks_deleted=removed)
        return _call("/v1/documents/{document_id}", body)

    @app.get("/v1/matters/{matter_id}/documents", response_model=DocumentListResponse)
    def list_documents(matter_id: str, x_actor: Optional[str] = Header(default=None)):
        _require(x_actor, matter_id, READ)
        return _call(
            "/v1/matters/{matter_id}/documents",
            lambda: DocumentListResponse(
                documents=[_document_out(d) for d in _container().passage_store.list_documents(matter_id)]
            ),
        )

    @app.post("/v1/retrieve", response_model=RetrieveResponse)
    def retrieve(req: RetrieveRequest, x_actor: Optional[str] = Header(default=None)):
        _require(x_actor, req.matter_id, READ)
        return _call(
            "/v1/retrieve",
            lambda: RetrieveResponse(
                passages=[
                    _passage_out(p)
                    for p in _container().retriever.retrieve(req.matter_id, req.query, req.limit)
                ]
            ),
        )

    @app.post("/v1/analyse", response_model=ResultResponse)
    def analyse(req: AnalyseRequest, x_actor: Optional[str] = Header(default=None)):
        if req.matter_id:
            _require(x_actor, req.matter_id, READ)

        def body():
            out = _container().analysis_pipeline.run(
                [m.model_dump() for m in req.messages],
                matter_id=req.matter_id,
                matter_name=req.matter_name,
                jurisdiction=req.jurisdiction,
                query_type=req.query_type,
                focus_areas=req.focus_areas,
            )
            return ResultResponse(result=str(out.get("response", "")))
        return _call("/v1/analyse", body)

    @app.post("/v1/tools", response_model=ResultResponse)
    def tools(req: ToolRequestIn, x_actor: Optional[str] = Header(default=None)):
        _require(x_actor, req.matter_id, READ)
        return _call(
            "/v1/tools",
            lambda: ResultResponse(
                result=_container().tool_runner.run(
                    req.tool,
                    req.matter_id,
                    matter_name=req.matter_name,
                    jurisdiction=req.jurisdiction,
                    matter_nature=req.matter_nature,
                    matter_issues=req.matter_issues,
                    instructions=req.instructions,
                    anchor_doc_names=req.anchor_doc_names,
                )
            ),
        )

    return app


app = create_app()
