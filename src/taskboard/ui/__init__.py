from .state import BoardState, ColumnState, TaskCardState, view_to_state

__all__ = ["BoardState", "ColumnState", "TaskCardState", "view_to_state"]
