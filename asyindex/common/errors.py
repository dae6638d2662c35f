import errno
from http import HTTPStatus


class HTTPError(Exception):
	"""Terminal request error carrying the HTTP status the server should answer with."""
	status = 500

	def __init__(self, message:str = None, status:int = None):
		if status is not None:
			self.status = status
		if message is None:
			message = HTTPStatus(self.status).phrase
		self.message = message
		super().__init__(self.message)

class BadRequest(HTTPError):
	status = 400

class Forbidden(HTTPError):
	status = 403

class NotAcceptable(HTTPError):
	status = 406

class ListingIOError(HTTPError):
	def __init__(self, innerexception:Exception, message:str = None, status:int = None):
		self.innerexception = innerexception
		if status is None:
			status = ListingIOError.status_from_oserror(innerexception)
		if message is None:
			message = HTTPStatus(status).phrase
		super().__init__(message, status)

	@staticmethod
	def status_from_oserror(err:Exception):
		if isinstance(err, OSError) and err.errno == errno.ENAMETOOLONG:
			return 414
		return 500

class PredicateError(HTTPError):
	def __init__(self, innerexception:Exception, message="The listing filter raised an exception"):
		self.innerexception = innerexception
		super().__init__(message, 500)
