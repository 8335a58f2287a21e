"""Product API routes.

Learn: Routes handle HTTP concerns (status codes, empty 404 bodies),
ProductService handles the business logic. The service lives on
app.state so every request in one app shares the same store and hub.
"""

from fastapi import APIRouter, Depends, Request, Response

from product_updates.schemas.product import ProductCreate, ProductRead, ProductUpdate
from product_updates.services.product_service import ProductService
from product_updates.store import ProductNotFoundError

router = APIRouter()


def _svc(request: Request) -> ProductService:
    return request.app.state.product_service


@router.get("/products", response_model=list[ProductRead])
async def get_products(svc: ProductService = Depends(_svc)):
    return await svc.get_products()


@router.post("/products", response_model=ProductRead, status_code=201)
async def add_product(
    body: ProductCreate,
    response: Response,
    request: Request,
    svc: ProductService = Depends(_svc),
):
    product = await svc.add_product(
        name=body.name, price=body.price, description=body.description
    )
    response.headers["Location"] = str(request.url_for("get_products"))
    return product


@router.put("/products/{product_id}", status_code=204)
async def update_product(
    product_id: int,
    body: ProductUpdate,
    svc: ProductService = Depends(_svc),
):
    try:
        await svc.update_product(product_id, **body.model_dump(exclude_unset=True))
    except ProductNotFoundError:
        return Response(status_code=404)
    return Response(status_code=204)


@router.delete("/products/{product_id}", status_code=204)
async def delete_product(product_id: int, svc: ProductService = Depends(_svc)):
    try:
        await svc.delete_product(product_id)
    except ProductNotFoundError:
        return Response(status_code=404)
    return Response(status_code=204)
