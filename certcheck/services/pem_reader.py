"""
PEM证书文件解析服务
"""
import re
import time
from datetime import datetime, timezone
from typing import List, Optional
import logging

from cryptography import x509
from cryptography.x509.oid import NameOID

from ..exceptions import CertificateDecodeError, PemDecodeError
from ..models import ProbeOutcome, ReportSet
from .aggregator import build_report
from .expiry_calculator import ExpiryCalculator, format_duration

# PEM文件大小上限
MAX_PEM_SIZE = 8192

PEM_BLOCK_PATTERN = re.compile(
    rb'-----BEGIN CERTIFICATE-----\s.+?\s-----END CERTIFICATE-----', re.DOTALL
)

logger = logging.getLogger(__name__)


def _dns_names(cert: x509.Certificate) -> List[str]:
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return []
    return san.get_values_for_type(x509.DNSName)


def read_certificate(data: bytes) -> x509.Certificate:
    """
    读取PEM数据中的服务器证书

    只处理前 MAX_PEM_SIZE 字节。返回第一个带DNS名称的证书，
    如果都没有DNS名称则返回最后一个。

    Args:
        data: PEM数据

    Returns:
        x509.Certificate: 证书

    Raises:
        PemDecodeError: 没有找到证书块
        CertificateDecodeError: 证书块无法解析
    """
    blocks = PEM_BLOCK_PATTERN.findall(data[:MAX_PEM_SIZE])
    if not blocks:
        raise PemDecodeError("no pem blocks found")

    cert: Optional[x509.Certificate] = None
    for block in blocks:
        try:
            cert = x509.load_pem_x509_certificate(block)
        except ValueError as e:
            raise CertificateDecodeError(f"failed to parse certificate: {e}") from e
        if _dns_names(cert):
            break

    return cert


def load_certificate_file(path: str) -> bytes:
    """读取证书文件（最多 MAX_PEM_SIZE 字节）"""
    with open(path, 'rb') as handle:
        return handle.read(MAX_PEM_SIZE)


def report_from_pem(data: bytes, warn_at_days: int = 30,
                    now: Optional[datetime] = None) -> ReportSet:
    """
    根据PEM证书生成单条记录的报告

    Args:
        data: PEM数据
        warn_at_days: 提前警告天数
        now: 计算时间

    Returns:
        ReportSet: 汇总报告

    Raises:
        CertificateDecodeError: 证书无法读取
    """
    started = time.monotonic()
    cert = read_certificate(data)

    names = _dns_names(cert)
    if names:
        host = names[0]
    else:
        common_names = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        host = str(common_names[0].value) if common_names else ""

    outcome = ProbeOutcome(host=host, port="", warn_at_days=warn_at_days)
    ExpiryCalculator(warn_at_days).apply(outcome, cert, now or datetime.now(timezone.utc))
    outcome.message = "OK"
    outcome.fetch_time = format_duration(time.monotonic() - started)

    logger.info(f"已读取证书文件，主体: {host or '-'}, 过期时间: {outcome.not_after}")
    return build_report([outcome])
