"""FastAPI application - DNS Change Approval Service.

Start with:
    PYTHONPATH=src uvicorn dns_change_svc.main:app --host 0.0.0.0 --port 8060

Endpoints:
- GET /api/v1/domain/change/myapply    - change requests submitted by the caller
- GET /api/v1/domain/change/myapprove  - change requests the caller can decide
- PUT /api/v1/domain/change/{id}?opt=  - accept or reject a change request
- GET /health
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from . import __version__
from . import _bootstrap as bs
from .changes import routes as change_routes
from .changes.errors import ChangeError
from .changes.service import ChangeService
from .config import Config
from .identity.extractor import SubjectExtractor, SubjectMiddleware

logger = logging.getLogger(__name__)


def create_app(
    config: Config | None = None,
    service: ChangeService | None = None,
    extractor: SubjectExtractor | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        config: Config to use; loaded from file at startup when omitted.
        service: Pre-built service (tests); built from config when omitted.
        extractor: Caller identity extractor for SubjectMiddleware.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting DNS change service...")

        cfg = config
        if cfg is None:
            cfg, _config_path = bs.load_config()
        app.state.config = cfg

        change_service = service or bs.build_change_service(cfg)
        change_routes.configure(change_service)
        logger.info(
            f"Domain change workflow enabled (dns provider={cfg.dns.provider}, "
            f"self approval={'on' if cfg.approval.allow_self_approval else 'off'})"
        )

        logger.info("DNS change service started")
        yield

        change_routes.configure(None)
        logger.info("DNS change service stopped")

    app = FastAPI(
        title="DNS Change Approval",
        description="Peer approval of proposed DNS record changes.",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Domain Changes", "description": "List and decide on DNS change requests"},
            {"name": "Health", "description": "Liveness"},
        ],
    )
    app.add_middleware(SubjectMiddleware, extractor=extractor)
    app.add_exception_handler(ChangeError, change_routes.change_error_handler)
    app.include_router(change_routes.router)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()


def run():
    """Run the service with uvicorn."""
    import uvicorn

    config, _ = bs.load_config()
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format,
    )

    uvicorn.run(
        "dns_change_svc.main:app",
        host=config.server.host,
        port=config.server.port,
        workers=config.server.workers,
        reload=config.server.reload,
    )


if __name__ == "__main__":
    run()
