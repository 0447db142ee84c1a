from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from taskflow.models.user import User
from taskflow.models.todo import Todo

def get_user_or_404(db: Session, user_id: int) -> User:
    """
    Get user by ID or raise 404 if not found.

    Args:
        db: Database session
        user_id: ID of the user to retrieve

    Returns:
        User: User object if found

    Raises:
        HTTPException: 404 if user not found
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user

def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email).first()

def get_owned_todo_or_404(db: Session, todo_id: int, user_id: int) -> Todo:
    """
    Get a todo by ID that belongs to the given user.

    A todo owned by someone else is reported exactly like a missing one.

    Raises:
        HTTPException: 404 if no todo matches both ID and owner
    """
    todo = db.query(Todo).filter(Todo.id == todo_id, Todo.user_id == user_id).first()
    if not todo:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Todo not found"
        )
    return todo
