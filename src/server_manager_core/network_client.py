import socket
import urllib.request
from typing import Callable, Optional


class NetworkClient:
    PUBLIC_IP_URL = "https://ifconfig.me/ip"

    def __init__(self, log_fn: Callable[[str], None]):
        self.log = log_fn

    def public_ip(self, timeout: float = 5.0) -> Optional[str]:
        """WAN address as seen from outside, or None if the lookup fails."""
        try:
            req = urllib.request.Request(
                self.PUBLIC_IP_URL,
                headers={"User-Agent": "curl/8.0"},
            )
            with urllib.request.urlopen(req, timeout=timeout) as response:
                if response.status == 200:
                    return response.read().decode("utf-8").strip() or None
        except (OSError, ValueError) as e:
            self.log(f"[NET-ERR] Public IP lookup failed: {e}")
        return None

    @staticmethod
    def lan_ip() -> Optional[str]:
        """
        Address of the interface that carries the default route.
        UDP connect sends nothing; it only makes the kernel pick a source address.
        """
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
                s.connect(("10.255.255.255", 1))
                addr = s.getsockname()[0]
                return None if addr.startswith("0.") else addr
        except OSError:
            return None

    def download_file(self, url: str, dest_path: str) -> bool:
        """
        Streams a file download to the destination path.
        """
        try:
            self.log(f"[NET] Downloading: {url}")
            req = urllib.request.Request(
                url,
                data=None,
                headers={'User-Agent': 'Valheim-Server-Manager/1.0'}
            )

            with urllib.request.urlopen(req, timeout=30) as response:
                with open(dest_path, 'wb') as f:
                    while True:
                        chunk = response.read(8192)
                        if not chunk:
                            break
                        f.write(chunk)
            self.log(f"[NET] Saved to: {dest_path}")
            return True
        except (OSError, ValueError) as e:
            self.log(f"[NET-ERR] Download failed: {e}")
            return False
