from abc import ABC, abstractmethod


class BaseOutput(ABC):
    @abstractmethod
    def write(self, report):
        """Render a DashboardReport to the chosen sink and return the path(s) written."""
        pass
