from concurrent.futures import Executor, Future


class NaiveExecutor(Executor):
    """
    Runs each submitted call to completion on the calling thread, so code
    written against the Executor interface works with threading disabled.
    """
    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            result = fn(*args, **kwargs)
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(result)
        return future
