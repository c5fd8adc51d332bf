from dbloader.utils.connection_utils import dispose_all_engines, get_engine

__all__ = ['dispose_all_engines', 'get_engine']
