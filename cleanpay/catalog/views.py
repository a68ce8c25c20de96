from fastapi import APIRouter

from cleanpay.catalog.services import list_services

router = APIRouter(tags=["Catalog API"])


@router.get("/services")
def services_list():
    return {"services": [s.to_public() for s in list_services()]}
