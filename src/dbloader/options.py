from dataclasses import dataclass

from libb import ConfigOptions, scriptname

__all__ = ['LoaderOptions']


@dataclass
class LoaderOptions(ConfigOptions):
    """Options

    - fetch_size: Rows fetched from the cursor per batch (default: 5000)
    - stream_results: Use a server-side cursor where the dialect supports one (default: True)
    - timeout: Connect timeout in seconds, 0 for the driver default (default: 0)
    - appname: Application name reported to the server (default: script name)
    """
    fetch_size: int = 5000
    stream_results: bool = True
    timeout: int = 0
    appname: str = None

    def __post_init__(self):
        if self.fetch_size < 1:
            raise ValueError(f'fetch_size must be positive, got {self.fetch_size}')
        if self.timeout < 0:
            raise ValueError(f'timeout must not be negative, got {self.timeout}')
        self.appname = self.appname or scriptname() or 'python_console'
