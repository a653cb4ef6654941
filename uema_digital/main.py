"""Main Quart application for the UEMA Digital assistant."""
import logging
from quart import Quart, request, jsonify
from pydantic import ValidationError
import structlog

from uema_digital import config, db
from uema_digital.auth import UserContext, PermissionDenied
from uema_digital.documents import DocumentNotFound, document_store
from uema_digital.memory import ConversationManager
from uema_digital.models import Document
from uema_digital.rag.composer import GroundedChatComposer
from uema_digital.rag.enrichment import enricher
from uema_digital.rag.inflight import InflightRequests, RequestSuperseded
from uema_digital.rag.retriever import get_retriever
from uema_digital.schemas import (
    ChatRequest,
    DocumentCreate,
    DocumentUpdate,
    SearchRequest,
    SessionCreate,
)


def configure_logging(level: str = None) -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(level=level or config.LOG_LEVEL, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


configure_logging()
logger = structlog.get_logger()

app = Quart(__name__)

conversation_manager = ConversationManager()
composer = GroundedChatComposer()
inflight = InflightRequests()


def current_user() -> UserContext:
    return UserContext.from_headers(request.headers)


async def _json_body() -> dict:
    data = await request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@app.before_serving
async def startup():
    db.init_database()
    logger.info(
        "app_started",
        provider_configured=config.provider_configured(),
        chat_model=config.CHAT_MODEL,
    )


@app.route("/api/search", methods=["POST"])
async def search():
    """Rank documents for a free-text query.

    Expects JSON body:
    {
        "query": "prazo edital 01/2025",
        "top_k": 5,          // optional
        "client_id": "tab-1" // optional, a newer search from the same client supersedes this one
    }
    """
    payload = SearchRequest.model_validate(await _json_body())
    retriever = get_retriever()

    call = retriever.retrieve(payload.query, top_k=payload.top_k)
    try:
        if payload.client_id:
            outcome = await inflight.run(("search", payload.client_id), call)
        else:
            outcome = await call
    except RequestSuperseded:
        return jsonify({"error": "Search superseded by a newer request"}), 409

    return jsonify({
        "strategy": outcome.strategy.value,
        "requested_strategy": outcome.requested.value,
        "results": [result.to_dict() for result in outcome.results],
    })


@app.route("/api/chat", methods=["POST"])
async def chat():
    """Grounded chat over the document repository.

    Expects JSON body:
    {
        "message": "user message text",
        "session_id": "optional-session-id"  // creates new if not provided
    }

    Returns JSON:
    {
        "response": "assistant response text",
        "session_id": "session-id",
        "related_docs": ["doc-id", ...],
        "strategy": "keyword"
    }
    """
    payload = ChatRequest.model_validate(await _json_body())

    session_id = payload.session_id
    if not session_id:
        session_id = conversation_manager.create_session()
    elif conversation_manager.get_session(session_id) is None:
        return jsonify({"error": "Session not found"}), 404

    logger.info(
        "chat_request_received",
        session_id=session_id,
        message_length=len(payload.message),
        user_message_preview=payload.message[:100],
    )

    # History is read before the new message is stored; the message travels separately
    history = conversation_manager.format_conversation_history(session_id)
    conversation_manager.add_message(session_id, "user", payload.message)

    try:
        reply = await inflight.run(
            ("chat", session_id),
            composer.answer(payload.message, history, top_k=payload.top_k),
        )
    except RequestSuperseded:
        logger.info("chat_request_superseded", session_id=session_id)
        return jsonify({"error": "Message superseded by a newer one", "session_id": session_id}), 409

    # The session may have been deleted while the answer was being composed
    if conversation_manager.get_session(session_id) is None:
        logger.info("chat_session_deleted_during_request", session_id=session_id)
        return jsonify({"error": "Session not found"}), 404

    conversation_manager.add_message(session_id, "assistant", reply.text, reply.related_doc_ids)

    if len(conversation_manager.get_all_messages(session_id)) == 2:
        conversation_manager.update_session_title(session_id, payload.message)

    logger.info(
        "chat_response_sent",
        session_id=session_id,
        response_length=len(reply.text),
        related_docs=len(reply.related_doc_ids),
    )

    return jsonify({
        "response": reply.text,
        "session_id": session_id,
        "model": config.CHAT_MODEL,
        "related_docs": reply.related_doc_ids,
        "strategy": reply.retrieval.strategy.value if reply.retrieval else None,
    })


@app.route("/api/documents", methods=["GET"])
async def list_documents():
    documents = document_store.list(
        sector=request.args.get("sector"),
        status=request.args.get("status"),
        text=request.args.get("q"),
    )
    return jsonify({"documents": [doc.to_dict(include_content=False) for doc in documents]})


@app.route("/api/documents", methods=["POST"])
async def create_document():
    """Create a document, generating missing tags and summary."""
    user = current_user()
    user.require(user.can_edit_documents(), "create documents")

    payload = DocumentCreate.model_validate(await _json_body())

    tags = payload.tags
    summary = payload.summary
    if payload.enrich:
        if not tags:
            tags = await enricher.generate_tags(payload.title, payload.content)
        if not summary:
            summary = await enricher.generate_summary(payload.title, payload.content)

    document = document_store.create(Document(
        id="",
        title=payload.title,
        type=payload.type,
        sector=payload.sector,
        status=payload.status,
        tags=tags,
        summary=summary,
        content=payload.content,
        size=payload.size,
        author=payload.author or user.name,
    ))

    logger.info("document_created", document_id=document.id, user_id=user.id)
    return jsonify(document.to_dict()), 201


@app.route("/api/documents/<document_id>", methods=["GET"])
async def get_document(document_id: str):
    return jsonify(document_store.get(document_id).to_dict())


@app.route("/api/documents/<document_id>", methods=["PUT"])
async def update_document(document_id: str):
    user = current_user()
    user.require(user.can_edit_documents(), "edit documents")

    payload = DocumentUpdate.model_validate(await _json_body())
    fields = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in ("summary", "content")
    }
    document = document_store.update(document_id, **fields)
    return jsonify(document.to_dict())


@app.route("/api/documents/<document_id>", methods=["DELETE"])
async def delete_document(document_id: str):
    user = current_user()
    user.require(user.can_delete_documents(), "delete documents")

    document_store.delete(document_id)
    logger.info("document_removed", document_id=document_id, user_id=user.id)
    return "", 204


@app.route("/api/sessions", methods=["POST"])
async def create_session():
    payload = SessionCreate.model_validate(await _json_body())
    session_id = conversation_manager.create_session(payload.title)
    return jsonify(conversation_manager.get_session(session_id)), 201


@app.route("/api/sessions", methods=["GET"])
async def list_sessions():
    return jsonify({"sessions": conversation_manager.list_sessions()})


@app.route("/api/sessions/<session_id>", methods=["DELETE"])
async def delete_session_endpoint(session_id: str):
    """Delete a session and all its messages.

    Returns:
        204 No Content if successful
        404 Not Found if session doesn't exist
    """
    inflight.cancel(("chat", session_id))
    if conversation_manager.delete_session(session_id):
        return "", 204
    return jsonify({"error": "Session not found"}), 404


@app.route("/api/sessions/<session_id>/messages", methods=["GET"])
async def get_session_messages(session_id: str):
    if conversation_manager.get_session(session_id) is None:
        return jsonify({"error": "Session not found"}), 404
    return jsonify({"messages": conversation_manager.get_all_messages(session_id)})


@app.route("/health/ready")
async def health_ready():
    """Readiness probe - check if app can serve requests.

    The service is ready without a provider; it then runs in keyword mode.
    """
    checks = {
        "status": "healthy",
        "provider_configured": config.provider_configured(),
        "retrieval_mode": "ai" if config.provider_configured() else "keyword",
    }

    try:
        checks["documents"] = document_store.count()
        embedding_cache = get_retriever().embedder.cache_info()
        checks["embedding_cache"] = {
            "size": embedding_cache.size,
            "max_size": embedding_cache.max_size,
            "hits": embedding_cache.hits,
            "misses": embedding_cache.misses,
        }
        return jsonify(checks), 200

    except Exception as e:
        logger.error("health_check_failed", error=str(e))
        checks["status"] = "unhealthy"
        checks["error"] = str(e)
        return jsonify(checks), 503


@app.route("/health/live")
async def health_live():
    """Liveness probe - check if app is running."""
    return jsonify({"status": "alive"}), 200


@app.errorhandler(ValidationError)
async def validation_error(error: ValidationError):
    return jsonify({
        "error": "Invalid request",
        "details": error.errors(include_url=False, include_context=False),
    }), 400


@app.errorhandler(PermissionDenied)
async def permission_denied(error: PermissionDenied):
    return jsonify({"error": str(error)}), 403


@app.errorhandler(DocumentNotFound)
async def document_not_found(error: DocumentNotFound):
    return jsonify({"error": "Document not found", "id": str(error)}), 404


@app.errorhandler(404)
async def not_found(error):
    """Handle 404 errors."""
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(500)
async def internal_error(error):
    """Handle 500 errors."""
    logger.error("internal_server_error", error=str(error))
    return jsonify({"error": "Internal server error"}), 500


if __name__ == "__main__":
    # For development - use hypercorn in production
    app.run(host="0.0.0.0", port=5000, debug=True)
