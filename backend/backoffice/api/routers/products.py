"""CRUD, status, search and paging endpoints for the product catalog."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from backoffice.api.dependencies.services import get_catalog_service
from backoffice.api.routers.error_helpers import raise_http_error
from backoffice.api.schemas.product import (
    ProductCreate,
    ProductListResponse,
    ProductRead,
    ProductStatus,
    ProductStatusUpdate,
    ProductUpdate,
)
from backoffice.core.exceptions import BackOfficeError
from backoffice.services.catalog_service import CatalogService
from backoffice.stores.catalog_store import ProductFilters

logger = logging.getLogger(__name__)

router = APIRouter()


def _unexpected(action: str, e: Exception) -> HTTPException:
    logger.error(f"Unexpected error while trying to {action}: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred",
    )


@router.get(
    "",
    summary="List products with filters and pagination",
    response_model=ProductListResponse,
)
def list_products(
    page: int = Query(1, description="Page number (1-indexed)"),
    page_size: int | None = Query(None, alias="pageSize", description="Items per page"),
    name: str | None = Query(None, description="Filter by name (partial match)"),
    product_status: ProductStatus = Query(
        "active", alias="status", description="active, inactive or all"
    ),
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductListResponse:
    """Return one page of products for the console grid.

    Only active products are listed unless ``status`` says otherwise.
    A page past the end is empty, not an error.
    """
    try:
        result = catalog.list_products(
            page, page_size, ProductFilters(name=name, status=product_status)
        )
        return ProductListResponse(
            items=[ProductRead.model_validate(p) for p in result.items],
            total=result.total,
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages,
        )
    except BackOfficeError as e:
        raise_http_error(e, "retrieve products")
    except Exception as e:
        raise _unexpected("list products", e) from e


@router.get(
    "/search",
    summary="Search products by name or code",
    response_model=list[ProductRead],
)
def search_products(
    search_term: str | None = Query(None, alias="searchTerm"),
    include_inactive: bool = Query(False, alias="includeInactive"),
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[ProductRead]:
    """Case-insensitive substring search ordered by name; blank matches all."""
    try:
        products = catalog.search_products(
            search_term, include_inactive=include_inactive
        )
        return [ProductRead.model_validate(p) for p in products]
    except BackOfficeError as e:
        raise_http_error(e, "search products")
    except Exception as e:
        raise _unexpected("search products", e) from e


@router.get(
    "/{product_code}",
    summary="Get a product by code",
    response_model=ProductRead,
)
def get_product(
    product_code: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductRead:
    try:
        return ProductRead.model_validate(catalog.get_product(product_code))
    except BackOfficeError as e:
        raise_http_error(e, "retrieve product")
    except Exception as e:
        raise _unexpected(f"load product {product_code}", e) from e


@router.post(
    "",
    summary="Create a product",
    status_code=status.HTTP_201_CREATED,
    response_model=ProductRead,
)
def create_product(
    payload: ProductCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductRead:
    """Persist a product from the console form under a newly assigned code."""
    try:
        return ProductRead.model_validate(catalog.create_product(payload))
    except BackOfficeError as e:
        raise_http_error(e, "create product")
    except Exception as e:
        raise _unexpected("create product", e) from e


@router.put(
    "/{product_code}",
    summary="Update existing product",
    response_model=ProductRead,
)
def update_product(
    product_code: str,
    payload: ProductUpdate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductRead:
    """Save the edit form; omitted fields keep their value, the code cannot change."""
    try:
        return ProductRead.model_validate(catalog.update_product(product_code, payload))
    except BackOfficeError as e:
        raise_http_error(e, "update product")
    except Exception as e:
        raise _unexpected(f"update product {product_code}", e) from e


@router.patch(
    "/{product_code}/status",
    summary="Activate or deactivate a product",
    response_model=bool,
)
def update_product_status(
    product_code: str,
    payload: ProductStatusUpdate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> bool:
    try:
        return catalog.update_product_status(product_code, payload.is_active)
    except BackOfficeError as e:
        raise_http_error(e, "update product status")
    except Exception as e:
        raise _unexpected(f"update status of {product_code}", e) from e


@router.delete(
    "/bulk",
    summary="Delete several products",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_products(
    product_codes: list[str] = Body(..., description="Codes to delete"),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Response:
    """Delete each listed product independently; unknown codes are skipped."""
    try:
        result = catalog.delete_products(product_codes)
    except BackOfficeError as e:
        raise_http_error(e, "delete products")
    except Exception as e:
        raise _unexpected("bulk delete products", e) from e

    if result.failed:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": "Failed to delete some products",
                "failed": result.failed,
                "deleted": result.deleted,
            },
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{product_code}",
    summary="Delete a product",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_product(
    product_code: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Response:
    """Remove a product from the catalog; past orders keep their snapshot."""
    try:
        catalog.delete_product(product_code)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except BackOfficeError as e:
        raise_http_error(e, "delete product")
    except Exception as e:
        raise _unexpected(f"delete product {product_code}", e) from e
