"""
YouTube Copyright Checker - Backend API
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

FastAPI server for pre-upload copyright risk assessment.
"""

import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

import time
import secrets
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, field_validator, Field
from typing import Optional
import uvicorn

from analyzer import CopyrightAnalyzer
from models import SubmissionInput
from resources import get_resources
from rules_db import RuleDatabase

API_VERSION = "1.0.0"

# Input length limits
MAX_TITLE_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 5000
MAX_TAGS_LENGTH = 500
MAX_SOURCE_LENGTH = 100
MAX_FILE_NAME_LENGTH = 255

app = FastAPI(
    title="YouTube Copyright Checker API",
    description="Estimates copyright risk for a video before it is uploaded to YouTube",
    version=API_VERSION
)

# Headers attached to every response; reports are per-submission and never cached
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "Cache-Control": "no-store",
}


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response

# Optional shared-secret auth (set API_SECRET_KEY in .env to enable)
_api_secret = os.environ.get("API_SECRET_KEY", "").strip()
_PUBLIC_ENDPOINTS = {"/health", "/docs", "/openapi.json", "/redoc", "/resources"}

if _api_secret:
    logger.info("API authentication: ENABLED (API_SECRET_KEY set)")
else:
    logger.warning("API authentication: DISABLED. Set API_SECRET_KEY in .env to require auth.")


def _requires_api_key(request: Request) -> bool:
    if not _api_secret or request.method == "OPTIONS":
        return False
    return request.url.path.rstrip("/") not in _PUBLIC_ENDPOINTS


@app.middleware("http")
async def api_key_middleware(request: Request, call_next):
    """Check X-API-Key on analysis and rule endpoints when a secret is configured."""
    if _requires_api_key(request):
        provided_key = request.headers.get("X-API-Key", "")
        if not secrets.compare_digest(provided_key, _api_secret):
            logger.warning(f"Rejected request to {request.url.path}: bad or missing API key")
            return JSONResponse(status_code=401, content={"detail": "Invalid or missing API key"})
    return await call_next(request)

# Per-client sliding-window limits, keyed "<ip>:<path>"
_rate_limit_store: dict[str, list[float]] = {}
RATE_LIMIT_WINDOW = 60  # seconds
RATE_LIMITS = {
    "/analyze": 20,      # 20 requests per minute
    "/report": 10,
    "/health": 60,
}
DEFAULT_RATE_LIMIT = 30  # For unlisted endpoints
RATE_LIMIT_CLEANUP_SIZE = 200


def _within_window(timestamps: list[float], now: float) -> list[float]:
    return [t for t in timestamps if now - t < RATE_LIMIT_WINDOW]


def _prune_rate_limit_store(now: float) -> int:
    """Drop expired timestamps from every key and remove keys left empty.

    Returns the number of keys removed.
    """
    removed = 0
    for key in list(_rate_limit_store):
        recent = _within_window(_rate_limit_store[key], now)
        if recent:
            _rate_limit_store[key] = recent
        else:
            del _rate_limit_store[key]
            removed += 1
    if removed:
        logger.debug(f"Rate limiter pruned {removed} idle client(s)")
    return removed


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Reject a client once it exceeds the per-endpoint budget for the window."""
    path = request.url.path.rstrip("/")
    client_ip = request.client.host if request.client else "unknown"
    key = f"{client_ip}:{path}"
    limit = RATE_LIMITS.get(path, DEFAULT_RATE_LIMIT)
    now = time.time()

    if len(_rate_limit_store) > RATE_LIMIT_CLEANUP_SIZE:
        _prune_rate_limit_store(now)

    recent = _within_window(_rate_limit_store.get(key, []), now)
    if len(recent) >= limit:
        logger.warning(f"Rate limit hit for {key} ({limit}/{RATE_LIMIT_WINDOW}s)")
        _rate_limit_store[key] = recent
        return JSONResponse(
            status_code=429,
            content={"detail": f"Rate limit exceeded. Max {limit} requests per minute for {path}."}
        )

    recent.append(now)
    _rate_limit_store[key] = recent
    return await call_next(request)

# CORS for the upload form front end
# Security: Only allow listed origins (set ALLOWED_ORIGINS in .env, comma separated)
_allowed_origins = os.environ.get("ALLOWED_ORIGINS", "").strip()

if _allowed_origins:
    ALLOWED_ORIGINS = [o.strip() for o in _allowed_origins.split(",") if o.strip()]
    logger.info(f"CORS: Locked to {len(ALLOWED_ORIGINS)} origin(s)")
else:
    ALLOWED_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]
    logger.warning("CORS: No ALLOWED_ORIGINS set - allowing local dev origins only.")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-API-Key"],
)

# Initialize components
rules_db = RuleDatabase(os.environ.get("RULES_DB_PATH") or None)
analyzer = CopyrightAnalyzer(rules_db)

logger.info("=== Configuration ===")
logger.info(f"  rules_path: {rules_db.db_path}")
logger.info(f"  dimensions: {len(rules_db.get_dimensions())}")
logger.info(f"  score_rules: {len(rules_db.get_score_rules())}")
logger.info(f"  analysis_delay: {analyzer.delay_seconds}s")


# Request/Response models
class SubmissionRequest(BaseModel):
    title: str = Field(..., max_length=MAX_TITLE_LENGTH)
    description: str = Field("", max_length=MAX_DESCRIPTION_LENGTH)
    tags: str = Field("", max_length=MAX_TAGS_LENGTH)
    uses_music: bool = False
    music_source: str = Field("", max_length=MAX_SOURCE_LENGTH)
    uses_footage: bool = False
    footage_source: str = Field("", max_length=MAX_SOURCE_LENGTH)
    has_text: bool = False
    text_source: str = Field("", max_length=MAX_SOURCE_LENGTH)
    has_voiceover: bool = False
    has_thumbnail: bool = False
    # Upload form passes file names only; contents never reach the backend
    video_file: Optional[str] = Field(None, max_length=MAX_FILE_NAME_LENGTH)
    audio_file: Optional[str] = Field(None, max_length=MAX_FILE_NAME_LENGTH)
    thumbnail_file: Optional[str] = Field(None, max_length=MAX_FILE_NAME_LENGTH)

    @field_validator('title')
    @classmethod
    def validate_title_present(cls, v):
        if not v or not v.strip():
            raise ValueError('Video title is required')
        return v

    def to_submission(self) -> SubmissionInput:
        data = self.model_dump()
        data["has_thumbnail"] = self.has_thumbnail or bool(self.thumbnail_file)
        return SubmissionInput(**data)

class DimensionResult(BaseModel):
    risk: str  # high, medium, low
    details: str

class IssueItem(BaseModel):
    type: str
    severity: str  # high, medium, low
    message: str
    details: str

class RecommendationItem(BaseModel):
    priority: str  # high, medium, low
    title: str
    description: str

class AnalysisResponse(BaseModel):
    overall_risk: str
    score: int
    summary: str
    issues: list[IssueItem]
    recommendations: list[RecommendationItem]
    dimensions: dict[str, DimensionResult]

class ResourceLink(BaseModel):
    title: str
    description: str
    url: str
    link_text: str


async def run_analysis(request: SubmissionRequest) -> dict:
    """Analyze a request body and return the response payload"""
    report = await analyzer.analyze(request.to_submission())
    results = report.to_dict()
    results["summary"] = analyzer.summarize(report.overall_risk)
    return results


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": API_VERSION
    }


@app.post("/analyze", response_model=AnalysisResponse)
async def analyze_submission(request: SubmissionRequest):
    """
    Analyze a video submission for copyright risk.

    This endpoint:
    1. Checks each facet (title, description, music, footage, thumbnail, text)
    2. Scores the raw submission into an overall risk level
    3. Lists issues for the flagged facets
    4. Returns prioritized recommendations
    """
    try:
        return await run_analysis(request)
    except Exception as e:
        logger.error(f"Analysis endpoint error: {e}")
        raise HTTPException(status_code=500, detail="Internal analysis error")


@app.post("/report", response_class=HTMLResponse)
async def get_full_report(request: SubmissionRequest):
    """Generate a full HTML report for a submission"""
    try:
        results = await run_analysis(request)
        results["title"] = request.title
        return generate_report_html(results)
    except Exception as e:
        logger.error(f"Report generation error: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate report")


@app.get("/resources", response_model=list[ResourceLink])
async def get_reference_resources():
    """Get the external copyright reference links"""
    return get_resources()


@app.get("/rules")
async def get_rules():
    """Get the keyword rules, score weights and recommendation rules"""
    return rules_db.describe()


def generate_report_html(results: dict) -> str:
    """Generate a detailed HTML report"""
    import html

    risk = str(results.get('overall_risk', 'low'))
    if risk == 'high':
        risk_label = 'HIGH RISK'
    elif risk == 'medium':
        risk_label = 'MEDIUM RISK'
    else:
        risk = 'low'
        risk_label = 'LOW RISK'

    dimensions_html = ""
    for name, data in results.get('dimensions', {}).items():
        dim_risk = html.escape(str(data.get('risk', 'low')))
        safe_name = html.escape(str(name)).title()
        details = html.escape(str(data.get('details', '')))

        dimensions_html += f"""
        <div class="dimension-card {dim_risk}">
            <span class="name">{safe_name}</span>
            <span class="risk">{dim_risk.upper()}</span>
            <p>{details}</p>
        </div>
        """

    issues_html = ""
    for issue in results.get('issues', []):
        severity = html.escape(str(issue.get('severity', 'low')))
        issue_type = html.escape(str(issue.get('type', 'Unknown')))
        message = html.escape(str(issue.get('message', '')))
        details = html.escape(str(issue.get('details', '')))

        issues_html += f"""
        <div class="issue-item {severity}">
            <div class="issue-header">
                <span class="severity-badge">{severity.upper()}</span>
                <span class="type">{issue_type}</span>
            </div>
            <p class="message">{message}</p>
            <p>{details}</p>
        </div>
        """

    if not issues_html:
        issues_html = '<p class="no-issues">No copyright issues found</p>'

    recommendations_html = ""
    for rec in results.get('recommendations', []):
        priority = html.escape(str(rec.get('priority', 'low')))
        rec_title = html.escape(str(rec.get('title', '')))
        description = html.escape(str(rec.get('description', '')))

        recommendations_html += f"""
        <div class="recommendation {priority}">
            <h4>{rec_title}</h4>
            <p>{description}</p>
            <span class="priority">{priority.title()} Priority</span>
        </div>
        """

    resources_html = ""
    for res in get_resources():
        resources_html += f"""
        <div class="resource">
            <h4>{html.escape(res['title'])}</h4>
            <p>{html.escape(res['description'])}</p>
            <a href="{html.escape(res['url'])}" target="_blank" rel="noopener noreferrer">{html.escape(res['link_text'])}</a>
        </div>
        """

    title_safe = html.escape(str(results.get('title', '')))
    summary_safe = html.escape(str(results.get('summary', 'Analysis complete.')))

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>Copyright Report - {title_safe}</title>
        <style>
            * {{ margin: 0; padding: 0; box-sizing: border-box; }}
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                background: #f9fafb;
                color: #111827;
                min-height: 100vh;
                padding: 40px;
            }}
            .container {{ max-width: 800px; margin: 0 auto; }}
            header {{ text-align: center; margin-bottom: 40px; }}
            h1 {{ font-size: 32px; margin-bottom: 10px; }}
            .video-title {{ color: #6b7280; font-size: 14px; }}
            .risk-banner {{
                border-radius: 10px;
                border: 1px solid;
                padding: 25px;
                margin-bottom: 25px;
            }}
            .risk-banner.high {{ color: #dc2626; background: #fef2f2; border-color: #fecaca; }}
            .risk-banner.medium {{ color: #ca8a04; background: #fefce8; border-color: #fef08a; }}
            .risk-banner.low {{ color: #16a34a; background: #f0fdf4; border-color: #bbf7d0; }}
            .risk-banner h2 {{ font-size: 22px; margin-bottom: 8px; }}
            .section {{
                background: #fff;
                border-radius: 10px;
                padding: 25px;
                margin-bottom: 25px;
                box-shadow: 0 1px 3px rgba(0,0,0,0.1);
            }}
            .section h3 {{ font-size: 18px; margin-bottom: 16px; }}
            .dimensions-grid {{
                display: grid;
                grid-template-columns: repeat(auto-fill, minmax(220px, 1fr));
                gap: 15px;
            }}
            .dimension-card {{ border-radius: 8px; border: 1px solid; padding: 15px; }}
            .dimension-card.high {{ background: #fef2f2; border-color: #fecaca; }}
            .dimension-card.medium {{ background: #fefce8; border-color: #fef08a; }}
            .dimension-card.low {{ background: #f0fdf4; border-color: #bbf7d0; }}
            .dimension-card .name {{ font-weight: 600; margin-right: 8px; }}
            .dimension-card .risk {{ font-size: 11px; letter-spacing: 1px; }}
            .dimension-card p {{ font-size: 13px; margin-top: 6px; }}
            .issue-item {{
                padding: 15px;
                margin-bottom: 15px;
                border-radius: 8px;
                border: 1px solid #fecaca;
                background: #fef2f2;
            }}
            .issue-header {{ display: flex; gap: 10px; margin-bottom: 8px; }}
            .severity-badge {{
                padding: 3px 8px;
                border-radius: 4px;
                font-size: 11px;
                font-weight: 600;
                color: #fff;
                background: #dc2626;
            }}
            .issue-item.medium .severity-badge {{ background: #ca8a04; }}
            .issue-item .type {{ color: #6b7280; font-size: 13px; }}
            .issue-item .message {{ font-weight: 600; color: #b91c1c; }}
            .no-issues {{ color: #16a34a; text-align: center; padding: 20px; }}
            .recommendation {{
                padding: 15px;
                margin-bottom: 15px;
                border-left: 4px solid;
            }}
            .recommendation.high {{ border-color: #f87171; background: #fef2f2; }}
            .recommendation.medium {{ border-color: #facc15; background: #fefce8; }}
            .recommendation.low {{ border-color: #60a5fa; background: #eff6ff; }}
            .recommendation h4 {{ margin-bottom: 6px; }}
            .recommendation p {{ font-size: 14px; color: #4b5563; }}
            .recommendation .priority {{ display: inline-block; margin-top: 8px; font-size: 12px; }}
            .resources-grid {{
                display: grid;
                grid-template-columns: repeat(auto-fill, minmax(300px, 1fr));
                gap: 15px;
            }}
            .resource {{ border: 1px solid #e5e7eb; border-radius: 8px; padding: 15px; }}
            .resource p {{ font-size: 13px; color: #4b5563; margin: 6px 0; }}
            .resource a {{ color: #dc2626; font-size: 13px; font-weight: 600; }}
        </style>
    </head>
    <body>
        <div class="container">
            <header>
                <h1>YouTube Copyright Report</h1>
                <p class="video-title">{title_safe}</p>
            </header>

            <div class="risk-banner {risk}">
                <h2>Overall Risk: {risk_label}</h2>
                <p>{summary_safe}</p>
            </div>

            <div class="section">
                <h3>Detailed Content Analysis</h3>
                <div class="dimensions-grid">
                    {dimensions_html}
                </div>
            </div>

            <div class="section">
                <h3>Issues Found</h3>
                {issues_html}
            </div>

            <div class="section">
                <h3>Recommendations</h3>
                {recommendations_html}
            </div>

            <div class="section">
                <h3>Additional Resources</h3>
                <div class="resources-grid">
                    {resources_html}
                </div>
            </div>
        </div>
    </body>
    </html>
    """


if __name__ == "__main__":
    logger.info("YouTube Copyright Checker API")
    logger.info("Starting server at http://127.0.0.1:8000")
    logger.info("API docs: http://127.0.0.1:8000/docs")
    # SECURITY: bind to localhost only - never 0.0.0.0 without authentication
    uvicorn.run(app, host="127.0.0.1", port=8000)
