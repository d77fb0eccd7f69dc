from utils.security import PasswordVerifier

ALICE_PASSWORD = "Secret123!"
BOB_PASSWORD = "Hunter22!x"


class CountingVerifier(PasswordVerifier):
    """PasswordVerifier that records how many verifications ran."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = 0

    def verify(self, password, password_hash):
        self.calls += 1
        return super().verify(password, password_hash)
