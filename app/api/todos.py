"""
/todos 接口：待办事项 CRUD

端点：
- POST   /todos       — 创建（可选 x-auth，携带时记录 creator）
- GET    /todos       — 列表
- GET    /todos/{id}  — 详情
- DELETE /todos/{id}  — 删除，返回被删文档
- PATCH  /todos/{id}  — 部分更新 text / completed

id 不是合法 ObjectId 时直接 404，不进入查询层。
"""

import structlog
from bson import ObjectId
from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.db.client import get_db
from app.errors import InternalError, NotFound, QueryFailed, ValidationFailed
from app.observability.metrics import STORE_ERROR_TOTAL
from app.security.auth import AuthenticatedUser, get_optional_user
from app.todo.schemas import (
    TodoCreateRequest,
    TodoEnvelope,
    TodoListResponse,
    TodoOut,
    TodoUpdateRequest,
)
from app.todo.store import TodoStore
from app.validator import validate_todo

router = APIRouter(prefix="/todos", tags=["Todo"])
log = structlog.get_logger()


def parse_object_id(raw: str) -> ObjectId:
    """路径 id 校验：非法 id 与不存在一律按 404 处理"""
    if not ObjectId.is_valid(raw):
        raise NotFound()
    return ObjectId(raw)


def _store_failure(operation: str, exc: PyMongoError) -> None:
    STORE_ERROR_TOTAL.labels(collection="todos", operation=operation).inc()
    log.error("Todo 存储操作失败", operation=operation, error=str(exc))


def get_todo_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> TodoStore:
    return TodoStore(db)


@router.post("", response_model=TodoOut)
async def create_todo(
    body: TodoCreateRequest | None = None,
    store: TodoStore = Depends(get_todo_store),
    user: AuthenticatedUser | None = Depends(get_optional_user),
):
    result = validate_todo(body.model_dump() if body else {})
    if not result.ok:
        raise ValidationFailed.from_result(result)

    try:
        doc = await store.create(result.data["text"], creator=user.id if user else None)
    except PyMongoError as e:
        _store_failure("create", e)
        raise QueryFailed(str(e)) from e
    return TodoOut.from_document(doc)


@router.get("", response_model=TodoListResponse)
async def list_todos(store: TodoStore = Depends(get_todo_store)):
    try:
        docs = await store.list_all()
    except PyMongoError as e:
        _store_failure("list", e)
        raise InternalError(str(e)) from e
    return TodoListResponse(todos=[TodoOut.from_document(d) for d in docs])


@router.get("/{todo_id}", response_model=TodoEnvelope)
async def get_todo(todo_id: str, store: TodoStore = Depends(get_todo_store)):
    oid = parse_object_id(todo_id)
    try:
        doc = await store.get(oid)
    except PyMongoError as e:
        _store_failure("get", e)
        raise QueryFailed(str(e)) from e
    if doc is None:
        raise NotFound()
    return TodoEnvelope(todo=TodoOut.from_document(doc))


@router.delete("/{todo_id}", response_model=TodoEnvelope)
async def delete_todo(todo_id: str, store: TodoStore = Depends(get_todo_store)):
    oid = parse_object_id(todo_id)
    try:
        doc = await store.delete(oid)
    except PyMongoError as e:
        _store_failure("delete", e)
        raise QueryFailed(str(e)) from e
    if doc is None:
        raise NotFound()
    return TodoEnvelope(todo=TodoOut.from_document(doc))


@router.patch("/{todo_id}", response_model=TodoEnvelope)
async def update_todo(
    todo_id: str,
    body: TodoUpdateRequest | None = None,
    store: TodoStore = Depends(get_todo_store),
):
    oid = parse_object_id(todo_id)

    # 只把请求里真正出现的字段交给校验
    result = validate_todo(body.model_dump(exclude_unset=True) if body else {}, partial=True)
    if not result.ok:
        raise ValidationFailed.from_result(result)

    try:
        doc = await store.update(oid, result.data)
    except PyMongoError as e:
        _store_failure("update", e)
        raise QueryFailed(str(e)) from e
    if doc is None:
        raise NotFound()
    return TodoEnvelope(todo=TodoOut.from_document(doc))
