"""Customer address book."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from sqlmodel import Session

from src.storefront.api.http.deps import (
    enforce_origin,
    get_current_user,
    get_db_session,
    get_security_logger,
    require_csrf,
)
from src.storefront.api.http.payloads import screen
from src.storefront.core.services.security_log import SecurityLogger
from src.storefront.core.validation import AddressSchema, AddressUpdateSchema
from src.storefront.entities.core.user import User
from src.storefront.entities.service.address import Address, AddressRepository

router = APIRouter(prefix="/addresses", tags=["addresses"])

_state_changing = [Depends(enforce_origin), Depends(require_csrf)]


@router.get("", response_model=list[Address])
def list_addresses(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
) -> list[Address]:
    return AddressRepository(db).list_for_user(user.id)


@router.post("", status_code=201, response_model=Address, dependencies=_state_changing)
def create_address(
    request: Request,
    payload: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> Address:
    data = screen(AddressSchema, request, payload, security_logger)
    address = AddressRepository(db).create(Address(user_id=user.id, **data.model_dump()))
    db.commit()
    return address


@router.put("/{address_id}", response_model=Address, dependencies=_state_changing)
def update_address(
    address_id: str,
    request: Request,
    payload: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> Address:
    data = screen(AddressUpdateSchema, request, payload, security_logger)
    addresses = AddressRepository(db)
    current = addresses.get_for_user(user.id, address_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Address not found")

    updated = addresses.update(current.model_copy(update=data.model_dump(exclude_none=True)))
    db.commit()
    return updated


@router.delete("/{address_id}", dependencies=_state_changing)
def delete_address(
    address_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
) -> dict[str, str]:
    if not AddressRepository(db).delete(user.id, address_id):
        raise HTTPException(status_code=404, detail="Address not found")
    db.commit()
    return {"message": "Address deleted"}


@router.post("/{address_id}/default", response_model=Address, dependencies=_state_changing)
def set_default_address(
    address_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
) -> Address:
    address = AddressRepository(db).set_default(user.id, address_id)
    if address is None:
        raise HTTPException(status_code=404, detail="Address not found")
    db.commit()
    return address
