from jose import jwt

TEST_JWT_SECRET = "test-jwt-secret"
TEST_QR_SECRET = "test-qr-secret"


def get_admin_authentication_headers(
    role: str = "viewer", user_id: str = "admin_test", is_organizer: bool = True
) -> dict[str, str]:
    """
    Generates a signed admin JWT and authentication headers for a test admin.
    """
    payload = {
        "sub": user_id,
        "role": role,
        "isOrganizer": is_organizer,
        "exp": 9999999999,  # High expiration for tests
    }
    token = jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}
