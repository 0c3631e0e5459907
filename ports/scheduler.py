from abc import ABC, abstractmethod
from typing import Callable

class TimerPort(ABC):
    @abstractmethod
    def start(self):
        """Arma o timer"""
        pass

    @abstractmethod
    def cancel(self):
        """Desarma o timer (sem efeito se já disparou)"""
        pass

# (segundos, callback) -> TimerPort
TimerFactory = Callable[[float, Callable[[], None]], TimerPort]
