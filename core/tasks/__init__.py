from .queue import Task, TaskExecutionError, TaskQueue

__all__ = ['Task', 'TaskExecutionError', 'TaskQueue']
