from langchain_openai import ChatOpenAI
from app.core.config import settings

def get_llm() -> ChatOpenAI:
    """
    교재 Q&A 공용 LLM 클라이언트 (이미지 입력 지원 모델)
    - temperature 0 / top_p 1: 가장 확률 높은 출력만 요청
    """
    if not settings.OPENAI_API_KEY:
        raise RuntimeError("OPENAI_API_KEY is missing.")
    return ChatOpenAI(
        model=settings.LLM_MODEL,
        temperature=0.0,
        top_p=settings.LLM_TOP_P,
        api_key=settings.OPENAI_API_KEY,
    )
