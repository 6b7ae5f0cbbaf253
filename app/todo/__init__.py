"""
Todo 模块：待办事项的存储与对外模型
"""

from app.todo.schemas import TodoOut
from app.todo.store import TodoStore

__all__ = ["TodoOut", "TodoStore"]
