"""
schemas/common.py

- 전역 에러 핸들러가 내려주는 표준 에러 응답 스키마 (Pydantic v2)
- 도메인 예외(services/grading/errors.py)의 code / message 를 그대로 담는다
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """에러 코드/메시지를 담는 최소 단위"""
    code: str = Field(..., description="에러 식별 코드 (예: NO_ACTIVE_POLICY, INVALID_WEIGHT_CONFIGURATION)")
    message: str = Field(..., description="사람이 읽을 수 있는 에러 메시지")


class ErrorResponse(BaseModel):
    """
    middlewares/error_handler.py 에서 이 스키마로 리턴
    - success 는 항상 False (성공 응답의 {"success": True, "data": ...} 와 짝)
    """
    success: bool = False
    error: ErrorDetail
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="응답 생성 시각 (UTC)"
    )
    latency_ms: Optional[int] = Field(
        default=None, ge=0, description="요청 처리에 걸린 시간(ms). 실제 값은 X-Latency-Ms 헤더"
    )

    model_config = ConfigDict(extra="ignore")
