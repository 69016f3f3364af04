"""Sample host application shared by the tests."""

from dataclasses import dataclass

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.endpoints import HTTPEndpoint
from starlette.routing import Mount, Route


@dataclass
class User:
    id: str
    name: str


class InMemoryUsers:
    def __init__(self, users: list[User]):
        self.users = {u.id: u for u in users}

    def retrieve_by_id(self, user_id):
        return self.users.get(str(user_id))


def find_user(user_id):
    return User(str(user_id), "configured")


def require_json(request: Request):
    return None


class ReportController:
    def index(self):
        """List reports.

        @Parameter(
            name="period",
            in="query",
            type="string",
        )
        """
        return {"reports": []}


class ItemEndpoint(HTTPEndpoint):
    async def get(self, request):
        """Show an item.

        @Parameter(
            name="id",
            type="integer",
        )
        """
        return JSONResponse({"item": request.query_params.get("id")})


class BrokenAction:
    """Not an endpoint and not callable."""


def status(request):
    return JSONResponse({"status": "ok"})


app = FastAPI()
app.state.auth_providers = {"api": InMemoryUsers([User("1", "alice"), User("2", "bob")])}


@app.middleware("http")
async def stamp(request, call_next):
    response = await call_next(request)
    response.headers["x-stamped"] = "1"
    return response


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/api/users")
def list_users():
    return {"data": [{"id": 1}, {"id": 2}]}


@app.post("/api/users", dependencies=[Depends(require_json)])
async def create_user(request: Request):
    """Create a user.

    @Parameter(
        name="name",
        in="formData",
        type="string",
        required=true,
    )
    @Parameter(
        name="avatar",
        in="formData",
        type="file",
    )
    """
    form = await request.form()
    avatar = form.get("avatar")
    return JSONResponse(
        {"message": "created", "name": form.get("name"), "avatar": getattr(avatar, "filename", None)},
        status_code=201,
    )


@app.get("/api/search")
def search(q: str = "", page: int = 1):
    return {"q": q, "page": page}


@app.get("/api/whoami")
def whoami(request: Request):
    user = request.scope.get("user")
    return {"user": getattr(user, "name", None)}


@app.get("/api/headers")
def echo_headers(request: Request):
    return {"authorization": request.headers.get("authorization"), "accept": request.headers.get("accept")}


@app.get("/api/page", response_class=HTMLResponse)
def page():
    return "<h1>Hello</h1>"


@app.get("/api/boom")
def boom():
    raise RuntimeError("boom")


@app.get("/api/cookie")
def cookie():
    response = JSONResponse({"message": "baked"})
    response.set_cookie("session", "abc", httponly=True)
    return response


app.add_api_route("/api/reports", ReportController().index, methods=["GET"])
app.add_api_route("/api/ping", lambda: {"pong": True}, methods=["GET"])
app.add_route("/api/items", ItemEndpoint)
app.add_route("/api/broken", BrokenAction)
app.router.routes.append(Mount("/api/v2", routes=[Route("/status", status)]))
