import logging
import time
from functools import wraps


def timeit(func):
    """装饰器，用于测量函数执行时间

    Args:
        func: 被装饰的函数

    Returns:
        wrapper: 包装后的函数
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()  # 记录开始时间
        result = func(*args, **kwargs)  # 执行原函数
        end_time = time.perf_counter()  # 记录结束时间
        logging.debug(f"函数 {func.__name__} 执行耗时：{end_time - start_time:.4f}秒")
        return result

    return wrapper
