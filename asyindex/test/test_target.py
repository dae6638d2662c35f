import os
import ssl

import pytest
from cryptography import x509

from asyindex.unicomm.common.target import UniTarget, UniProto
from asyindex.unicomm.common.unissl import UniSSL
from asyindex.unicomm.utils.genselfsigned import generate_selfsigned_cert
from asyindex.unicomm.utils.paramprocessor import bool_one, int_one, str_one


def test_paramprocessor():
    assert str_one(['a', 'b']) == 'a'
    assert int_one(['10']) == 10
    assert bool_one(['yes']) is True
    assert bool_one(['0']) is False


class TestUniTarget:
    def test_http(self):
        target = UniTarget.from_url('http://0.0.0.0:9000/')
        assert target.protocol == UniProto.SERVER_TCP
        assert target.ip == '0.0.0.0'
        assert target.port == 9000
        assert target.ssl_ctx is None
        assert target.timeout == 5

    def test_default_ports(self):
        assert UniTarget.from_url('http://127.0.0.1/').port == 80
        assert UniTarget.from_url('https://127.0.0.1/?cert=c.pem&key=k.pem').port == 443

    def test_hostname(self):
        target = UniTarget.from_url('http://localhost:8080/?timeout=30')
        assert target.ip is None
        assert target.hostname == 'localhost'
        assert target.get_ip_or_hostname() == 'localhost'
        assert target.timeout == 30

    def test_https_files(self):
        target = UniTarget.from_url('https://127.0.0.1:8443/?cert=/tmp/c.pem&key=/tmp/k.pem&password=pw')
        assert target.protocol == UniProto.SERVER_SSL_TCP
        assert target.ssl_ctx.certfile == '/tmp/c.pem'
        assert target.ssl_ctx.keyfile == '/tmp/k.pem'
        assert target.ssl_ctx.password == 'pw'

    def test_unknown_scheme(self):
        with pytest.raises(Exception):
            UniTarget.from_url('ftp://127.0.0.1/')


class TestSelfSigned:
    def test_generate(self, tmp_path):
        certfile, keyfile = generate_selfsigned_cert('localhost', str(tmp_path))
        assert os.path.dirname(certfile) == str(tmp_path)
        with open(certfile, 'rb') as f:
            cert = x509.load_pem_x509_certificate(f.read())
        names = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
        assert names.get_values_for_type(x509.DNSName) == ['localhost']

    def test_context(self, tmp_path):
        certfile, keyfile = generate_selfsigned_cert('localhost', str(tmp_path))
        ctx = UniSSL(certfile, keyfile).get_ssl_context()
        assert isinstance(ctx, ssl.SSLContext)

    def test_url_selfsigned(self):
        target = UniTarget.from_url('https://127.0.0.1:8443/?selfsigned=1')
        assert target.ssl_ctx is not None
        assert os.path.exists(target.ssl_ctx.certfile)

    def test_missing_certificate(self):
        with pytest.raises(Exception):
            UniSSL().get_ssl_context()
