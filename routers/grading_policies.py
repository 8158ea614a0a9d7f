from fastapi import APIRouter, Depends

from dependencies.grading import get_store
from schemas.grading_policies import GradingPolicyDraft, PolicyActivateRequest
from services.grading.store import SqlGradingStore

router = APIRouter(prefix="/grading-policies", tags=["성적 정책"])


# ==========================================================
# [1단계] 조회
# ==========================================================

# ✅ [READ] 전체 정책 목록
@router.get("/")
def list_policies(store: SqlGradingStore = Depends(get_store)):
    return {"success": True, "data": store.list_policies()}


# ✅ [READ] 현재 활성 정책 (없으면 409 NO_ACTIVE_POLICY)
@router.get("/active")
def read_active_policy(store: SqlGradingStore = Depends(get_store)):
    return {
        "success": True,
        "data": store.get_active_policy(),
        "activation_version": store.activation_version(),
    }


# ✅ [READ] 정책 상세
@router.get("/{policy_id}")
def read_policy(policy_id: int, store: SqlGradingStore = Depends(get_store)):
    return {"success": True, "data": store.get_policy(policy_id)}


# ==========================================================
# [2단계] 생성 / 수정 / 활성화
# ==========================================================

# ✅ [CREATE] 초안 정책 생성 (가중치 검증 실패 시 422 INVALID_WEIGHT_CONFIGURATION)
@router.post("/", status_code=201)
def create_policy(draft: GradingPolicyDraft, store: SqlGradingStore = Depends(get_store)):
    policy = store.create_policy(draft)
    return {"success": True, "data": policy, "message": "Grading policy created"}


# ✅ [UPDATE] 초안 정책만 수정 가능
@router.patch("/{policy_id}")
def update_policy(policy_id: int, draft: GradingPolicyDraft, store: SqlGradingStore = Depends(get_store)):
    policy = store.update_policy(policy_id, draft)
    return {"success": True, "data": policy, "message": "Grading policy updated"}


# ✅ [ACTIVATE] 활성화 (이전 활성 정책은 archived)
@router.post("/{policy_id}/activate")
def activate_policy(policy_id: int, body: PolicyActivateRequest = None,
                    store: SqlGradingStore = Depends(get_store)):
    expected = body.expected_version if body else None
    policy = store.activate_policy(policy_id, expected_version=expected)
    return {
        "success": True,
        "data": policy,
        "activation_version": store.activation_version(),
        "message": "Grading policy activated",
    }
