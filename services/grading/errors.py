"""
services/grading/errors.py

- 성적 산출/석차 엔진의 도메인 예외
- code / status_code는 middlewares/error_handler.py 에서 JSON 에러 응답으로 변환할 때 사용
"""


class GradingError(Exception):
    code = "GRADING_ERROR"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class InvalidWeightConfiguration(GradingError):
    """가중 평균 정책의 가중치 합이 100이 아니거나 음수 가중치가 있음 (정책 생성/수정 시점)"""
    code = "INVALID_WEIGHT_CONFIGURATION"
    status_code = 422


class NoActivePolicy(GradingError):
    """활성 정책 없이 석차 계산을 시도함"""
    code = "NO_ACTIVE_POLICY"
    status_code = 409


class OutOfRangeScore(GradingError):
    """범위로 보정할 수 없는 점수 (NaN, 무한대)"""
    code = "OUT_OF_RANGE_SCORE"
    status_code = 422


class UnknownAssessmentType(GradingError):
    code = "UNKNOWN_ASSESSMENT_TYPE"
    status_code = 422


class InvalidAssessmentRecord(GradingError):
    """학생/과목 ID 누락, 숫자가 아닌 점수 등 정규화할 수 없는 레코드"""
    code = "INVALID_ASSESSMENT_RECORD"
    status_code = 422


class ConcurrentRecomputeConflict(GradingError):
    """같은 (반, 학기)에 대해 더 새로운 재계산이 먼저 기록됨"""
    code = "CONCURRENT_RECOMPUTE_CONFLICT"
    status_code = 409


class PolicyNotFound(GradingError):
    code = "POLICY_NOT_FOUND"
    status_code = 404


class InvalidPolicyTransition(GradingError):
    code = "INVALID_POLICY_TRANSITION"
    status_code = 409


class PolicyActivationConflict(GradingError):
    """활성화 버전이 기대값과 다름 (다른 요청이 먼저 활성화함)"""
    code = "POLICY_ACTIVATION_CONFLICT"
    status_code = 409
