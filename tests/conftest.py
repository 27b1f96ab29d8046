"""
测试公共夹具
"""
import ipaddress
from datetime import datetime, timezone, timedelta

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import NameOID


def build_certificate(dns_names=('example.com',), ip_addresses=(), days_valid=51,
                      days_since_issue=39, issuer_cn='Test CA', subject_cn='example.com', key=None):
    """生成自签名测试证书，有效期以当前时间为基准"""
    key = key or ec.generate_private_key(ec.SECP256R1())
    now = datetime.now(timezone.utc)

    builder = (
        x509.CertificateBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject_cn)]))
        .issuer_name(x509.Name([
            x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, 'Test Org'),
        ]))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=days_since_issue))
        .not_valid_after(now + timedelta(days=days_valid, hours=1))
    )

    general_names = [x509.DNSName(name) for name in dns_names]
    general_names += [x509.IPAddress(ipaddress.ip_address(ip)) for ip in ip_addresses]
    if general_names:
        builder = builder.add_extension(x509.SubjectAlternativeName(general_names), critical=False)

    return builder.sign(key, hashes.SHA256())


@pytest.fixture
def cert_factory():
    """证书生成器"""
    return build_certificate


@pytest.fixture
def der_factory():
    """DER格式证书生成器"""
    def _build(**kwargs):
        return build_certificate(**kwargs).public_bytes(Encoding.DER)
    return _build


@pytest.fixture
def pem_factory():
    """PEM格式证书生成器"""
    def _build(**kwargs):
        return build_certificate(**kwargs).public_bytes(Encoding.PEM)
    return _build
