# app/core/config.py
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

def _to_float(v: str | None, default: float) -> float:
    if v is None or not v.strip():
        return default
    return float(v)

def _to_int(v: str | None, default: int) -> int:
    if v is None or not v.strip():
        return default
    return int(v)

@dataclass(frozen=True)
class Settings:
    # OpenAI (멀티모달 채팅 모델)
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    LLM_MODEL: str = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    LLM_TOP_P: float = _to_float(os.getenv("LLM_TOP_P"), 1.0)

    # PDF 페이지 추출
    MAX_PAGES: int = _to_int(os.getenv("MAX_PAGES"), 50)
    RENDER_ZOOM: float = _to_float(os.getenv("RENDER_ZOOM"), 1.5)
    JPEG_QUALITY: int = _to_int(os.getenv("JPEG_QUALITY"), 80)

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
