from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from app.api.deps import get_store
from app.schemas.billing import PlanStatusOut
from app.services import billing
from app.services.store import Store

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get("/status", response_model=PlanStatusOut)
def billing_status(store: Store = Depends(get_store)):
    return billing.plan_status(store)


@router.get("/upgrade", dependencies=[Depends(get_store)])
def upgrade():
    """
    Send the browser to the external checkout page. The provider returns the
    user to the app with ?success=true or ?canceled=true, which only the UI reads.
    """
    return RedirectResponse(billing.upgrade_url(), status_code=307)
