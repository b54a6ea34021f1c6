# ssrstore/main.py
from contextlib import asynccontextmanager
from datetime import timedelta
from http import HTTPStatus
from typing import Annotated, Optional

import structlog
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core import CartItemIn, LoginIn, ProductIn, RemoveProductIn, SignupIn
from .database import open_store
from .errors import AuthError
from .images import ImageStore
from .log import configure_logging
from .models import Product, products_out
from .security import PasswordHasher, T_CurrentAccount, TokenService
from .services import AccountService, CartService, CatalogService
from .settings import Settings

logger = structlog.get_logger(__name__)

router = APIRouter()


def _catalog(request: Request) -> CatalogService:
    return request.app.state.catalog


def _accounts(request: Request) -> AccountService:
    return request.app.state.accounts


def _carts(request: Request) -> CartService:
    return request.app.state.carts


T_Catalog = Annotated[CatalogService, Depends(_catalog)]
T_Accounts = Annotated[AccountService, Depends(_accounts)]
T_Carts = Annotated[CartService, Depends(_carts)]


# ---------------------------
# Root / health
# ---------------------------
@router.get("/")
async def read_root():
    return {"success": True, "message": "Welcome to SSR Styles"}


@router.get("/health")
async def health(request: Request):
    store = request.app.state.store
    ok = await store.ping()
    return {"success": True, "store": store.kind, "database": "ok" if ok else "unavailable"}


# ---------------------------
# Images
# ---------------------------
@router.post("/upload")
async def upload_image(request: Request, product: Optional[UploadFile] = File(None)):
    img_url = await request.app.state.images.save(product)
    return {"success": True, "img_url": img_url}


# ---------------------------
# Catalog
# ---------------------------
@router.get("/products")
async def list_products(catalog: T_Catalog):
    return {"success": True, "products": products_out(await catalog.list_all())}


@router.post("/addproduct")
async def add_product(payload: ProductIn, catalog: T_Catalog):
    product = await catalog.add(payload)
    return {
        "success": True,
        "name": product["name"],
        "product": Product.model_validate(product).model_dump(mode="json"),
    }


@router.post("/removeproduct")
async def remove_product(payload: RemoveProductIn, catalog: T_Catalog):
    await catalog.remove(payload.id)
    return {"success": True, "id": payload.id}


@router.get("/newcollection")
async def new_collection(catalog: T_Catalog):
    return {"success": True, "products": products_out(await catalog.new_collection())}


@router.get("/popularinwomen")
async def popular_in_women(catalog: T_Catalog):
    return {"success": True, "products": products_out(await catalog.popular("women"))}


@router.get("/popular/{category}")
async def popular_in_category(category: str, catalog: T_Catalog):
    return {"success": True, "products": products_out(await catalog.popular(category))}


# ---------------------------
# Accounts
# ---------------------------
@router.post("/signup", status_code=HTTPStatus.CREATED)
async def signup(payload: SignupIn, accounts: T_Accounts):
    token, cart = await accounts.signup(payload.name, payload.email, payload.password)
    return {"success": True, "token": token, "cartData": cart}


@router.post("/login")
async def login(payload: LoginIn, accounts: T_Accounts):
    token, cart = await accounts.login(payload.email, payload.password)
    return {"success": True, "token": token, "cartData": cart}


# ---------------------------
# Cart (auth-token required)
# ---------------------------
@router.post("/addtocart")
async def add_to_cart(payload: CartItemIn, account_id: T_CurrentAccount, carts: T_Carts):
    item, cart = await carts.increment(account_id, payload.itemId)
    return {"success": True, "itemId": item, "count": cart[item], "cartData": cart}


@router.post("/removefromcart")
async def remove_from_cart(payload: CartItemIn, account_id: T_CurrentAccount, carts: T_Carts):
    item, cart = await carts.decrement(account_id, payload.itemId)
    return {"success": True, "itemId": item, "count": cart[item], "cartData": cart}


@router.post("/getcart")
async def get_cart(account_id: T_CurrentAccount, carts: T_Carts):
    return {"success": True, "cartData": await carts.read(account_id)}


# ---------------------------
# Error envelope
# ---------------------------
async def _http_error(request: Request, exc: StarletteHTTPException):
    body = {"success": False, "error": str(exc.detail)}
    if isinstance(exc, AuthError):
        body["errors"] = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


async def _validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    return JSONResponse(
        status_code=HTTPStatus.BAD_REQUEST, content={"success": False, "error": message}
    )


async def _unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error", method=request.method, path=request.url.path)
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal server error"},
    )


# ---------------------------
# App factory
# ---------------------------
def create_app(settings: Optional[Settings] = None, store=None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level)
    store = store if store is not None else open_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await store.open()
        logger.info("Store opened", store=store.kind)
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(title="ssr-store", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    tokens = TokenService(
        settings.jwt_secret.get_secret_value(),
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(minutes=settings.token_ttl_minutes),
    )
    images = ImageStore(settings.upload_dir, settings.public_base_url)

    app.state.settings = settings
    app.state.store = store
    app.state.tokens = tokens
    app.state.images = images
    app.state.catalog = CatalogService(store)
    app.state.accounts = AccountService(store, PasswordHasher(), tokens, settings.cart_slots)
    app.state.carts = CartService(store)

    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unhandled_error)

    app.include_router(router)
    app.mount("/images", StaticFiles(directory=images.directory), name="images")
    return app


def run() -> None:
    settings = Settings()
    uvicorn.run(
        "ssrstore.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
