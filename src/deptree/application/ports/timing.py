import abc


class Timer(abc.ABC):
    @abc.abstractmethod
    def get_current_time(self) -> float:
        raise NotImplementedError
