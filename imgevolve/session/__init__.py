from imgevolve.session.statistics import MutationStatistics
from imgevolve.session.task_state import FORMAT_VERSION, TaskState

__all__ = ["FORMAT_VERSION", "MutationStatistics", "TaskState"]
