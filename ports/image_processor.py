from abc import ABC, abstractmethod
from typing import Tuple

from domain.model.image_asset import ImageAsset


class ImageProcessorPort(ABC):
    """
    Porta para a biblioteca de manipulação de imagens
    (redimensionar + comprimir em JPEG).
    """

    @abstractmethod
    def probe(self, asset: ImageAsset) -> Tuple[int, int]:
        """Retorna (largura, altura) em pixels."""
        pass

    @abstractmethod
    def resize(self, asset: ImageAsset, width: int, height: int, quality: float) -> ImageAsset:
        """
        Gera uma nova imagem com as dimensões e a qualidade (0..1) pedidas.

        Returns:
            Novo ImageAsset; `file_size` pode vir None se a implementação
            não souber informar o tamanho final.
        """
        pass
