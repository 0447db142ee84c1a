from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from taskflow.database.connection import get_db
from taskflow.models.todo import Todo
from taskflow.schemas.todo import TodoCreate, TodoUpdate, TodoItemResponse, TodoListResponse
from taskflow.schemas.user import MessageResponse
from taskflow.schemas.token import SessionIdentity
from taskflow.auth.dependencies import get_current_identity
from taskflow.config.helpers import get_owned_todo_or_404
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/todos", tags=["Todos"])

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_PAGE = 1_000_000
MAX_LIMIT = 100

def commit_or_500(db: Session, failure_message: str):
    """Commit the session, mapping store errors to a 500 response"""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{failure_message}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=failure_message
        )

@router.post("", response_model=TodoItemResponse, status_code=status.HTTP_201_CREATED)
def create_todo(
    todo: TodoCreate,
    db: Session = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity)
):
    """
    Create a new todo
    - **title**: Required, at most 100 characters
    - **description**: Optional, at most 500 characters
    - **priority**: low, medium or high (default: low)
    - **dueDate**: Optional ISO-8601 date
    """
    new_todo = Todo(
        user_id=identity.user_id,
        title=todo.title,
        description=todo.description,
        priority=todo.priority,
        due_date=todo.due_date
    )
    db.add(new_todo)
    commit_or_500(db, "Failed to create todo")
    db.refresh(new_todo)
    return {"success": True, "todo": new_todo}

@router.get("", response_model=TodoListResponse)
def get_todos(
    db: Session = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
    page: int = Query(DEFAULT_PAGE, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, le=MAX_LIMIT)
):
    """
    Get the current user's todos, newest first
    - page: Page number (starts from 1)
    - limit: Items per page (default: 10, max: 100)
    """
    page = page if page >= 1 else DEFAULT_PAGE
    limit = limit if limit >= 1 else DEFAULT_LIMIT

    query = db.query(Todo).filter(Todo.user_id == identity.user_id)
    try:
        todos = query.order_by(Todo.created_at.desc(), Todo.id.desc())\
                     .offset((page - 1) * limit)\
                     .limit(limit)\
                     .all()
        total = query.count()
        completed = query.filter(Todo.completed.is_(True)).count()
    except SQLAlchemyError as e:
        logger.error(f"Failed to retrieve todos for user {identity.user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve todos"
        )

    return {
        "success": True,
        "todos": todos,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit
        },
        "stats": {
            "total": total,
            "completed": completed,
            "pending": total - completed
        }
    }

@router.put("/{todo_id}", response_model=TodoItemResponse)
def update_todo(
    todo_id: int,
    todo_update: TodoUpdate,
    db: Session = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity)
):
    """
    Update a todo (partial update allowed)
    - **todo_id**: ID of the todo to update
    - **title**, **description**, **priority**, **dueDate**, **completed**: all optional
    """
    todo = get_owned_todo_or_404(db, todo_id, identity.user_id)

    update_data = todo_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(todo, field, value)

    commit_or_500(db, "Failed to update todo")
    db.refresh(todo)
    return {"success": True, "todo": todo}

@router.delete("/{todo_id}", response_model=MessageResponse)
def delete_todo(
    todo_id: int,
    db: Session = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity)
):
    """
    Delete a todo

    - **todo_id**: ID of the todo to delete
    """
    todo = get_owned_todo_or_404(db, todo_id, identity.user_id)

    db.delete(todo)
    commit_or_500(db, "Failed to delete todo")
    return {"success": True, "message": "Todo deleted successfully"}

@router.patch("/{todo_id}/toggle", response_model=TodoItemResponse)
def toggle_todo(
    todo_id: int,
    db: Session = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity)
):
    """
    Flip a todo between completed and pending
    """
    todo = get_owned_todo_or_404(db, todo_id, identity.user_id)

    todo.toggle()
    commit_or_500(db, "Failed to toggle todo completion status")
    db.refresh(todo)
    return {"success": True, "todo": todo}
