"""
Todo model - one row per task entry, partitioned by the owning user id
"""
from sqlalchemy import Column, Integer, BigInteger, String, Text, Boolean, UniqueConstraint
from todo_app.database import Base


class TodoItem(Base):
    __tablename__ = "todos"
    __table_args__ = (
        UniqueConstraint("user_id", "todo_id", name="uq_todos_user_todo"),
    )

    # Surrogate key; ascending pk is the list's insertion order
    pk = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(String, nullable=False, index=True)
    todo_id = Column(BigInteger, nullable=False)
    task = Column(Text, nullable=False)
    category = Column(String, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)

    # Nullable so rows written before these fields existed still load;
    # defaults are filled on read
    priority = Column(String, nullable=True)
    due_date = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(BigInteger, nullable=True)
