import enum
import ipaddress
from urllib.parse import urlparse, parse_qs

from asyindex.unicomm.common.unissl import UniSSL
from asyindex.unicomm.utils.paramprocessor import int_one

class UniProto(enum.Enum):
	SERVER_TCP = 6
	SERVER_SSL_TCP = 7

unitarget_url_params = {
	'timeout' : int_one,
}

class UniTarget:
	"""Where the server listens."""
	def __init__(self, ip:str, port:int, protocol:UniProto, timeout:int = 5, ssl_ctx:UniSSL = None, hostname:str = None):
		self.hostname = hostname
		self.port = port
		self.protocol = protocol
		self.timeout = timeout
		self.ssl_ctx = ssl_ctx
		self.ip = None

		if ip is not None:
			try:
				ipaddress.ip_address(ip)
				self.ip = ip
			except ValueError:
				self.hostname = ip

		if self.ip is None and self.hostname is None:
			raise Exception('Both IP and Hostname can\'t be none!')

	@staticmethod
	def get_help():
		return 'Listener URL: http://<host>:<port>/ or https://<host>:<port>/\n' + \
			'Query params:\n' + \
			'\ttimeout - int - client read timeout in seconds\n' + \
			'\tcert - str - TLS certificate path (https only)\n' + \
			'\tkey - str - TLS key path (https only)\n' + \
			'\tpassword - str - TLS key password (https only)\n' + \
			'\tselfsigned - bool - generate a self-signed certificate (https only)\n'

	def get_ssl_context(self):
		if self.ssl_ctx is None:
			self.ssl_ctx = UniSSL.get_selfsigned(self.get_hostname_or_ip())
		return self.ssl_ctx.get_ssl_context()

	def get_ip_or_hostname(self):
		if self.ip is not None:
			return self.ip
		return self.hostname

	def get_hostname_or_ip(self):
		if self.hostname is not None:
			return self.hostname
		return self.ip

	@staticmethod
	def from_url(listen_url:str, port:int = None):
		url_e = urlparse(listen_url)
		scheme = url_e.scheme.lower()
		if scheme == 'http':
			protocol = UniProto.SERVER_TCP
			default_port = 80
		elif scheme == 'https':
			protocol = UniProto.SERVER_SSL_TCP
			default_port = 443
		else:
			raise Exception('Unsupported listener scheme "%s"' % url_e.scheme)

		if url_e.port is not None:
			port = url_e.port
		if port is None:
			port = default_port

		params = dict.fromkeys(unitarget_url_params.keys(), None)
		query = parse_qs(url_e.query) if url_e.query else {}
		for k in query:
			if k in unitarget_url_params:
				params[k] = unitarget_url_params[k](query[k])

		host = url_e.hostname or '127.0.0.1'
		ssl_ctx = None
		if protocol == UniProto.SERVER_SSL_TCP:
			ssl_ctx = UniSSL.from_urlparams(query, host)

		timeout = params['timeout'] if params['timeout'] is not None else 5
		return UniTarget(host, port, protocol, timeout = timeout, ssl_ctx = ssl_ctx)

	def __str__(self):
		t = '==== UniTarget ====\r\n'
		for k in self.__dict__:
			t += '%s: %s\r\n' % (k, self.__dict__[k])
		return t
