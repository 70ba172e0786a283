import ipaddress


def parse_proxy_networks(raw: str):
    nets = []
    for part in (raw or "").split(","):
        token = part.strip()
        if not token:
            continue
        try:
            nets.append(ipaddress.ip_network(token, strict=False))
        except ValueError:
            continue
    return nets


def client_ip(request_obj, trusted_proxy_networks) -> str:
    """Address of the caller, honouring forwarding headers only from trusted proxies."""
    remote_raw = (request_obj.remote_addr or "").strip()
    try:
        remote_ip = ipaddress.ip_address(remote_raw) if remote_raw else None
    except ValueError:
        remote_ip = None

    if remote_ip and any(remote_ip in net for net in trusted_proxy_networks):
        xff = (request_obj.headers.get("X-Forwarded-For") or "").split(",")[0].strip()
        for candidate in (xff, (request_obj.headers.get("X-Real-IP") or "").strip()):
            try:
                return str(ipaddress.ip_address(candidate))
            except ValueError:
                continue

    return str(remote_ip) if remote_ip else (remote_raw or "unknown")
