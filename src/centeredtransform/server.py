from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Literal, Tuple

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field, FiniteFloat
from .controls import (
    DEFAULT_SETTINGS,
    TargetControls,
    TransformControls,
    clamp_params,
    drag_to_target,
    load_settings_file,
)
from .geometry import Point, Rect, Size, transformed_bounds
from .transform import (
    CenteredTransform,
    animation_css_frames,
    build_centered_transform,
    to_css_matrix,
)
import logging

log = logging.getLogger(__name__)


ROOT = Path(__file__).resolve().parent
TEMPLATES_DIR = ROOT / "templates"
STATIC_DIR = ROOT / "static"


def _load_settings() -> dict:
    path = os.getenv("CENTERED_TRANSFORM_SETTINGS")
    if path:
        return load_settings_file(path)
    return dict(DEFAULT_SETTINGS)


SETTINGS = _load_settings()

app = FastAPI(title="Centered Transform API", version="1.0.0")

# Serve static assets (JS)
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
templates = Jinja2Templates(directory=TEMPLATES_DIR)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    # Rejected inputs may be NaN/inf, which JSON cannot encode
    errors = [
        {**err, "input": repr(err["input"])} if "input" in err else err
        for err in exc.errors()
    ]
    log.debug("rejected %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


# Serve the playground at root
@app.get("/")
async def index(request: Request):
    return templates.TemplateResponse(
        request, "playground.html", {"settings": SETTINGS}
    )

@app.get("/playground")
async def playground(request: Request):
    return await index(request)


class RectModel(BaseModel):
    x: FiniteFloat = 0.0
    y: FiniteFloat = 0.0
    width: FiniteFloat = 0.0
    height: FiniteFloat = 0.0

    def to_rect(self) -> Rect:
        return Rect.from_xywh(self.x, self.y, self.width, self.height)


class ParamsModel(BaseModel):
    offset_x: FiniteFloat = 0.0
    offset_y: FiniteFloat = 0.0
    rotation: FiniteFloat = 0.0  # degrees
    scale: FiniteFloat = 1.0


class TransformRequest(ParamsModel):
    size: Tuple[FiniteFloat, FiniteFloat]


class TargetRequest(BaseModel):
    canvas: RectModel
    measured: RectModel = RectModel()
    target: Tuple[FiniteFloat, FiniteFloat] = (0.1, 0.1)
    rotation: FiniteFloat = 0.0  # degrees
    scale: FiniteFloat = 1.0


class DragRequest(BaseModel):
    canvas_size: Tuple[FiniteFloat, FiniteFloat]
    location: Tuple[FiniteFloat, FiniteFloat]


class AnimateRequest(BaseModel):
    size: Tuple[FiniteFloat, FiniteFloat]
    start: ParamsModel
    end: ParamsModel = ParamsModel()
    steps: int = Field(12, ge=0, le=240)
    # target mode: offsets are derived from geometry and are not clamped
    mode: Literal["offset", "target"] = "offset"


def _transform_payload(size: Size, params: CenteredTransform) -> dict:
    M = build_centered_transform(size, params)
    center = (size.width / 2, size.height / 2)
    bounds = transformed_bounds(M, Rect(Point(), size))
    return {
        "matrix": M.tolist(),
        "css": to_css_matrix(M),
        "center": center,
        "new_center": (center[0] + params.offset_x, center[1] + params.offset_y),
        "bounds": {
            "x": bounds.min_x,
            "y": bounds.min_y,
            "width": bounds.size.width,
            "height": bounds.size.height,
        },
        "params": {
            "offset_x": params.offset_x,
            "offset_y": params.offset_y,
            "rotation": params.rotation_degrees,
            "scale": params.scale,
        },
    }


@app.get("/api/ping")
async def ping():
    return {"ok": True, "time": datetime.now(timezone.utc).isoformat()}


@app.get("/api/settings")
async def settings():
    return {
        **SETTINGS,
        "reset": {
            "offset": TransformControls(settings=SETTINGS).as_dict(),
            "target": TargetControls(settings=SETTINGS).as_dict(),
        },
    }


@app.post("/api/transform")
async def transform(req: TransformRequest):
    try:
        params = clamp_params(req.offset_x, req.offset_y, req.rotation, req.scale, SETTINGS)
        return _transform_payload(Size(*req.size), params)
    except Exception as e:
        log.exception("transform failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/target")
async def target(req: TargetRequest):
    try:
        ctl = TargetControls(settings=SETTINGS)
        ctl.set_target(Point(*req.target))
        ctl.set_rotation(req.rotation)
        ctl.set_scale(req.scale)
        measured = req.measured.to_rect()
        params = ctl.snapshot(canvas=req.canvas.to_rect(), measured_frame=measured)
        payload = _transform_payload(measured.size, params)
        payload["target"] = ctl.target.as_tuple()
        payload["offset"] = (params.offset_x, params.offset_y)
        return payload
    except Exception as e:
        log.exception("target transform failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/drag")
async def drag(req: DragRequest):
    target_point = drag_to_target(Point(*req.location), Size(*req.canvas_size))
    return {"target": target_point.as_tuple()}


def _animation_params(p: ParamsModel, mode: str) -> CenteredTransform:
    if mode == "target":
        ctl = TargetControls(settings=SETTINGS)
        ctl.set_rotation(p.rotation)
        ctl.set_scale(p.scale)
        return CenteredTransform.from_degrees(p.offset_x, p.offset_y, ctl.rotation_deg, ctl.scale)
    return clamp_params(p.offset_x, p.offset_y, p.rotation, p.scale, SETTINGS)


@app.post("/api/animate")
async def animate(req: AnimateRequest):
    try:
        start = _animation_params(req.start, req.mode)
        end = _animation_params(req.end, req.mode)
        frames: List[str] = animation_css_frames(start, end, Size(*req.size), req.steps)
        return {"frames": frames}
    except Exception as e:
        log.exception("animation failed")
        raise HTTPException(status_code=500, detail=str(e))




def main():
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=int(os.getenv("PORT", 8002)))

if __name__ == "__main__":
    main()
