from postfeed.controller.debounce import SearchDebouncer
from postfeed.controller.fetch import FetchController
from postfeed.controller.session import PostsController
from postfeed.controller.state import StateStore

__all__ = [
    "FetchController",
    "PostsController",
    "SearchDebouncer",
    "StateStore",
]
