from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import api_key_auth
from app.db.crud.invoice_groups import list_invoice_groups, preview_number
from app.db.session import get_db
from app.schemas.dto import InvoiceGroupResponse

router = APIRouter(dependencies=[Depends(api_key_auth)])


@router.get("", response_model=list[InvoiceGroupResponse])
def list_groups(db: Session = Depends(get_db)) -> list[InvoiceGroupResponse]:
    return [
        InvoiceGroupResponse(id=g.id, name=g.name, next_number=preview_number(db, g.id))
        for g in list_invoice_groups(db)
    ]
