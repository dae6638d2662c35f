import os
import uuid
import datetime
import tempfile
import ipaddress

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID

from asyindex.unicomm import logger


def generate_selfsigned(hostname:str = 'localhost', key_exp:int = 65537, key_size:int = 2048, days:int = 365):
	"""Returns a PEM encoded (certificate, key) pair valid for `hostname`."""
	logger.debug('Generating self-signed certificate for %s' % hostname)
	one_day = datetime.timedelta(1, 0, 0)
	now = datetime.datetime.now(datetime.timezone.utc)
	private_key = rsa.generate_private_key(
		public_exponent=key_exp,
		key_size=key_size,
	)

	alt_names = [x509.DNSName(hostname)]
	try:
		alt_names.append(x509.IPAddress(ipaddress.ip_address(hostname)))
	except ValueError:
		pass

	name = x509.Name([
		x509.NameAttribute(NameOID.COMMON_NAME, hostname),
	])
	builder = x509.CertificateBuilder()
	builder = builder.subject_name(name)
	builder = builder.issuer_name(name)
	builder = builder.not_valid_before(now - one_day)
	builder = builder.not_valid_after(now + datetime.timedelta(days, 0, 0))
	builder = builder.serial_number(int(uuid.uuid4()))
	builder = builder.public_key(private_key.public_key())
	builder = builder.add_extension(
		x509.SubjectAlternativeName(alt_names), critical=False,
	)
	builder = builder.add_extension(
		x509.BasicConstraints(ca=False, path_length=None), critical=True,
	)
	certificate = builder.sign(private_key=private_key, algorithm=hashes.SHA256())

	cert_pem = certificate.public_bytes(encoding=serialization.Encoding.PEM)
	key_pem = private_key.private_bytes(
		encoding=serialization.Encoding.PEM,
		format=serialization.PrivateFormat.TraditionalOpenSSL,
		encryption_algorithm=serialization.NoEncryption()
	)
	return cert_pem, key_pem

def generate_selfsigned_cert(hostname:str = 'localhost', out_dir:str = None):
	"""Writes a fresh self-signed certificate and key to `out_dir` (a new temp dir by default)
	and returns the (certfile, keyfile) paths."""
	cert_pem, key_pem = generate_selfsigned(hostname)
	if out_dir is None:
		out_dir = tempfile.mkdtemp(prefix='asyindex_')
	certfile = os.path.join(out_dir, 'cert.pem')
	keyfile = os.path.join(out_dir, 'key.pem')
	with open(certfile, 'wb') as f:
		f.write(cert_pem)
	with open(keyfile, 'wb') as f:
		f.write(key_pem)
	os.chmod(keyfile, 0o600)
	return certfile, keyfile
