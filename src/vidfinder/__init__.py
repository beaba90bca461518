"""vidfinder: extrai a URL direta de vídeo de uma página observando o tráfego do navegador."""

__version__ = "0.1.0"
