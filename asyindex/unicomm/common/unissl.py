import ssl

from asyindex.unicomm.utils.paramprocessor import str_one, bool_one

unissl_url_params = {
	'cert' : str_one,
	'key' : str_one,
	'password' : str_one,
	'selfsigned' : bool_one,
}

class UniSSL:
	"""Server side TLS settings. Keeps file paths instead of an SSLContext so it can be copied and printed."""
	def __init__(self, certfile:str = None, keyfile:str = None, password:str = None):
		self.certfile:str = certfile
		self.keyfile:str = keyfile
		self.password:str = password

	@staticmethod
	def get_selfsigned(hostname:str = 'localhost'):
		"""Returns a UniSSL backed by a freshly generated self-signed certificate."""
		from asyindex.unicomm.utils.genselfsigned import generate_selfsigned_cert
		certfile, keyfile = generate_selfsigned_cert(hostname)
		return UniSSL(certfile, keyfile)

	def get_ssl_context(self, protocol = ssl.PROTOCOL_TLS_SERVER):
		if self.certfile is None:
			raise Exception('TLS server needs a certificate!')
		ssl_ctx = ssl.SSLContext(protocol)
		ssl_ctx.load_cert_chain(certfile=self.certfile, keyfile=self.keyfile, password=self.password)
		return ssl_ctx

	@staticmethod
	def from_urlparams(query:dict, hostname:str = 'localhost'):
		params = dict.fromkeys(unissl_url_params.keys(), None)
		for k in query:
			if k in unissl_url_params:
				params[k] = unissl_url_params[k](query[k])

		if params['cert'] is not None:
			return UniSSL(params['cert'], params['key'], params['password'])
		if params['selfsigned'] is True:
			return UniSSL.get_selfsigned(hostname)
		return None

	def __str__(self):
		return 'UniSSL(certfile=%s, keyfile=%s)' % (self.certfile, self.keyfile)
