import logging

from fastapi import FastAPI
from app.core.config import settings
from app.textbook.controller import router as textbook_router, chat_router, preview_router
from app.textbook.page_render import router as textbook_page_image_router

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title="Verbatim Study Hub")

app.include_router(textbook_page_image_router)
app.include_router(textbook_router)
app.include_router(chat_router)
app.include_router(preview_router)

@app.get("/health")
def health():
    return {"ok": True}
