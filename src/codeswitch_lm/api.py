"""HTTP API for codeswitch_lm."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException

from codeswitch_lm import __version__
from codeswitch_lm.config import load_config
from codeswitch_lm.core import get_model, score_text, summarize_model
from codeswitch_lm.errors import CodeSwitchLMError, MissingResourceError
from codeswitch_lm.lm.codeswitch import CodeSwitchModel
from codeswitch_lm.models import HealthResponse, ModelSummary, ScoreRequest, ScoreResponse


def create_app(model_path: str | None = None) -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(
        title="codeswitch-lm",
        version=__version__,
        description="Code-switching character language model scoring API.",
    )
    config = load_config()
    resolved_model_path = model_path or config.model_path

    def _model() -> CodeSwitchModel:
        try:
            return get_model(resolved_model_path)
        except MissingResourceError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except CodeSwitchLMError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

    @app.get("/health", response_model=HealthResponse, tags=["system"])
    def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__, env=config.env)

    @app.get("/v1/model", response_model=ModelSummary, tags=["model"])
    def model_summary() -> ModelSummary:
        return summarize_model(_model())

    @app.post("/v1/score", response_model=ScoreResponse, tags=["scoring"])
    def score(request: ScoreRequest) -> ScoreResponse:
        model = _model()
        try:
            return score_text(model, request.text)
        except CodeSwitchLMError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

    return app


app = create_app()
