import logging

logger = logging.getLogger('asyindex.unicomm')
