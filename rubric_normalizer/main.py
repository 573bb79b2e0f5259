import logging

from fastapi import FastAPI, UploadFile, File, HTTPException
from .models import HealthResponse, KitResponse, NormalizeRequest, NormalizeResponse
from .normalize import normalize_with_report
from .kit import KitFormatError, load_kit_bytes, normalize_kit
from . import config

logging.basicConfig(
    level=config.log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="rubric-normalizer",
    description="Deterministic rubric weight normalization for interview kits",
    version="0.1.0",
)

@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}

@app.post("/normalize", response_model=NormalizeResponse)
def normalize_criteria(request: NormalizeRequest):
    default = request.default_weight if request.default_weight is not None else config.default_weight()
    pairs = [(c.label, c.weight) for c in request.criteria]
    normalized, report = normalize_with_report(pairs, default)
    return {
        "criteria": [{"label": label, "weight": weight} for label, weight in normalized],
        "report": report,
    }

@app.post("/normalize/kit", response_model=KitResponse)
async def normalize_kit_file(file: UploadFile = File(...)):
    if not (file.filename or "").lower().endswith(".json"):
        logger.warning("Rejected upload %r: not a .json file", file.filename)
        raise HTTPException(status_code=422, detail="Only JSON files are supported")

    raw = await file.read()
    try:
        document = load_kit_bytes(raw)
        key, kit, report = normalize_kit(document, config.default_weight())
    except KitFormatError as exc:
        logger.warning("Rejected upload %r: %s", file.filename, exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return {"rubric_key": key, "kit": kit, "report": report}
