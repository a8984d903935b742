from abc import ABC, abstractmethod


class BaseLoader(ABC):
    @abstractmethod
    def load(self, file_path: str):
        """
        Yield Transaction instances from file_path.
        Labels are passed through as-is; vocabulary checks happen downstream.
        """
        pass
