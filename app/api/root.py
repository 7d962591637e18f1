from fastapi import APIRouter

router = APIRouter()

@router.get("/")
def root():
    return {
        "name": "Newsletter Console Backend",
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
    }
