"""FastAPI application entrypoint and HTTP controllers.

Controllers are intentionally thin: they accept requests, delegate to
services, and return JSON responses. Record errors are translated to
status codes by the exception handlers registered below.

Endpoints implemented:
- POST /students
- GET /students/placeholder
- GET /students/{student_id}
- POST /students/{student_id}/advance
- PUT /students/{student_id}/status
- POST /tests
- GET /tests/{test_id}
- GET /tests/{test_id}/questions
- GET /tests/{test_id}/questions/{question_number}
- GET /tests/{test_id}/questions/{question_number}/multiple-answer
- GET /tests/{test_id}/questions/{question_number}/choices
"""

import json
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from . import errors, models, repositories, services
from .config import settings
from .questions import question_adapter
from .schemas import ChoicesOut, MultipleAnswerOut, StatusIn, StudentIn, StudentOut, TestIn

app = FastAPI(title="Education Records API")
logger = logging.getLogger("edurecords.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

student_service = services.StudentService(repositories.StudentRepository())
test_service = services.TestService(repositories.TestRepository())

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

_ERROR_STATUS = (
    (errors.ValidationError, 400),
    (errors.BoundsError, 409),
    (errors.DuplicateRecordError, 409),
    (errors.RecordNotFoundError, 404),
    (errors.QuestionNotFoundError, 404),
    (errors.AnswerKeyMissingError, 404),
)


def _error_handler(status_code: int):
    async def handler(request: Request, exc: errors.RecordError):
        body = {"detail": str(exc), "error": type(exc).__name__}
        field = getattr(exc, "field", None)
        if field:
            body["field"] = field
        return JSONResponse(status_code=status_code, content=body)
    return handler


for _exc_type, _status in _ERROR_STATUS:
    app.add_exception_handler(_exc_type, _error_handler(_status))


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info(
        "request_done %s",
        json.dumps(
            {
                "request_id": req_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
            ensure_ascii=True,
        ),
    )
    return response


def _student_out(student_id: str, student: models.Student) -> dict:
    return StudentOut(id=student_id, student=student.to_dict()).model_dump()


@app.post('/students')
def register_student(payload: StudentIn):
    """Validate and register a student.

    Responds 400 naming the first violated field when the payload breaks
    a student invariant.
    """
    fields = payload.model_dump(exclude={'account'})
    fields['account'] = models.Account(**payload.account.model_dump())
    student_id = student_service.register(**fields)
    return _student_out(student_id, student_service.get(student_id))


@app.get('/students/placeholder')
def placeholder_student():
    """Return the fixed sample student attached to answer keys."""
    return models.Student.placeholder().to_dict()


@app.get('/students/{student_id}')
def get_student(student_id: str):
    return _student_out(student_id, student_service.get(student_id))


@app.post('/students/{student_id}/advance')
def advance_student(student_id: str):
    """Advance the student one grade; 409 when already in the last grade."""
    return _student_out(student_id, student_service.advance_grade(student_id))


@app.put('/students/{student_id}/status')
def set_student_status(student_id: str, payload: StatusIn):
    return _student_out(student_id, student_service.set_status(student_id, payload.status))


@app.post('/tests')
def register_test(payload: TestIn):
    """Validate and register a test; 409 when the test id is taken."""
    test = test_service.register(**payload.model_dump())
    return test.to_dict()


@app.get('/tests/{test_id}')
def get_test(test_id: str):
    return test_service.get(test_id).to_dict()


@app.get('/tests/{test_id}/questions')
def list_questions(test_id: str):
    """List number, kind and stem for each question of the test."""
    return test_service.question_summary(test_id)


@app.get('/tests/{test_id}/questions/{question_number}')
def get_question(test_id: str, question_number: int):
    """Return the decoded question, tagged by `kind`."""
    return question_adapter.dump_python(test_service.question(test_id, question_number), mode='json')


@app.get('/tests/{test_id}/questions/{question_number}/multiple-answer')
def question_is_multiple_answer(test_id: str, question_number: int):
    test = test_service.get(test_id)
    return MultipleAnswerOut(
        question_number=question_number,
        multiple_answer=test.is_multiple_answer(question_number),
    ).model_dump()


@app.get('/tests/{test_id}/questions/{question_number}/choices')
def question_choices(test_id: str, question_number: int):
    test = test_service.get(test_id)
    return ChoicesOut(
        question_number=question_number,
        choices=test.get_multiple_choices(question_number),
    ).model_dump()
