import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from errors import AttendanceError, ValidationError
from schemas import Student, StudentRecord
from settings import configure_logging, get_settings
from store import AttendanceStore, build_store

logger = logging.getLogger(__name__)


def _error_response(exc: AttendanceError):
    content = {"message": exc.message, "detail": exc.message}
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


async def handle_attendance_error(request: Request, exc: AttendanceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc)


async def handle_request_validation(request: Request, exc: RequestValidationError):
    # Malformed JSON never reaches the store; report it like any other bad payload
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    message = "; ".join(f"{e['field']}: {e['message']}" for e in errors) or "Invalid request"
    return _error_response(ValidationError(message, errors))


def create_app(store: Optional[AttendanceStore] = None, settings=None) -> FastAPI:
    settings = settings or get_settings()
    # an injected store belongs to the caller
    owns_store = store is None
    if owns_store:
        store = build_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_store:
            logger.info("Closing %s store", store.kind)
            store.close()

    app = FastAPI(title="Attendance API", lifespan=lifespan)
    app.state.store = store
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AttendanceError, handle_attendance_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)

    @app.get("/")
    def read_root():
        return {"message": "Attendance API ready"}

    @app.get("/test")
    def test_database():
        response = {
            "backend": "Running",
            "database": "Not Available",
            "database_url": "Set" if settings.database_url else "Not Set",
            "database_name": None,
            "connection_status": "Not Connected",
            "store": store.kind,
            "collections": [],
        }
        if store.ping():
            response["database"] = "Connected & Working"
            response["database_name"] = store.database_name
            response["connection_status"] = "Connected"
            response["collections"] = store.collection_names()
        return response

    @app.get("/schema")
    def get_schema():
        return {"student": {k: str(v.annotation) for k, v in Student.model_fields.items()}}

    # Attendance CRUD
    @app.get("/api/attendance", response_model=List[StudentRecord])
    def list_students():
        return store.list()

    @app.post("/api/attendance", response_model=StudentRecord, status_code=201)
    def add_student(payload: Any = Body(...)):
        return store.create(payload)

    @app.put("/api/attendance/{student_id}", response_model=StudentRecord)
    def update_student(student_id: str, payload: Any = Body(...)):
        return store.update(student_id, payload)

    @app.delete("/api/attendance/{student_id}")
    def delete_student(student_id: str):
        deleted = store.delete(student_id)
        return {"message": "Student deleted", "deleted": deleted}

    return app


def run():
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
