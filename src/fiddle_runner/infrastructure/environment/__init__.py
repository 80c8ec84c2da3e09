from .allocator import EnvironmentAllocator, generate_environment_id, thread_random

__all__ = ["EnvironmentAllocator", "generate_environment_id", "thread_random"]
