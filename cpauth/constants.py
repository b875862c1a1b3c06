"""Domain constants for the Chaum-Pedersen authentication protocol."""

from __future__ import annotations

from typing import Dict, NamedTuple


class GroupSpec(NamedTuple):
    """Raw description of a prime-order subgroup of ``Z_p^*``.

    ``h_seed`` is the public string the second generator is derived from, so
    that nobody knows its discrete logarithm to base ``g``. ``h`` overrides the
    derivation and is only meant for toy groups.
    """

    p: int
    q: int
    g: int
    h_seed: bytes
    h: int | None = None


# RFC 5114 section 2.1: 1024-bit MODP group with 160-bit prime order subgroup.
RFC5114_1024 = GroupSpec(
    p=int(
        "B10B8F96A080E01DDE92DE5EAE5D54EC52C99FBCFB06A3C69A6A9DCA52D23B61"
        "6073E28675A23D189838EF1E2EE652C013ECB4AEA906112324975C3CD49B83BF"
        "ACCBDD7D90C4BD7098488E9C219A73724EFFD6FAE5644738FAA31A4FF55BCCC0"
        "A151AF5F0DC8B4BD45BF37DF365C1A65E68CFDA76D4DA708DF1FB2BC2E4A4371",
        16,
    ),
    q=int("F518AA8781A8DF278ABA4E7D64B7CB9D49462353", 16),
    g=int(
        "A4D1CBD5C3FD34126765A442EFB99905F8104DD258AC507FD6406CFF14266D31"
        "266FEA1E5C41564B777E690F5504F213160217B4B01B886A5E91547F9E2749F4"
        "D7FBD7D3B9A92EE1909D0D2263F80A76A6A24C087A091F531DBF0A0169B6A28A"
        "D662A4D18E73AFA32D779D5918D08BC8858F4DCEF97C2A24855E6EEB22B3B2E5",
        16,
    ),
    h_seed=b"cpauth/rfc5114-1024/h",
)

# RFC 5114 section 2.2: 2048-bit MODP group with 224-bit prime order subgroup.
RFC5114_2048 = GroupSpec(
    p=int(
        "AD107E1E9123A9D0D660FAA79559C51FA20D64E5683B9FD1B54B1597B61D0A75"
        "E6FA141DF95A56DBAF9A3C407BA1DF15EB3D688A309C180E1DE6B85A1274A0A6"
        "6D3F8152AD6AC2129037C9EDEFDA4DF8D91E8FEF55B7394B7AD5B7D0B6C12207"
        "C9F98D11ED34DBF6C6BA0B2C8BBC27BE6A00E0A0B9C49708B3BF8A3170918836"
        "81286130BC8985DB1602E714415D9330278273C7DE31EFDC7310F7121FD5A074"
        "15987D9ADC0A486DCDF93ACC44328387315D75E198C641A480CD86A1B9E587E8"
        "BE60E69CC928B2B9C52172E413042E9B23F10B0E16E79763C9B53DCF4BA80A29"
        "E3FB73C16B8E75B97EF363E2FFA31F71CF9DE5384E71B81C0AC4DFFE0C10E64F",
        16,
    ),
    q=int("801C0D34C58D93FE997177101F80535A4738CEBCBF389A99B36371EB", 16),
    g=int(
        "AC4032EF4F2D9AE39DF30B5C8FFDAC506CDEBE7B89998CAF74866A08CFE4FFE3"
        "A6824A4E10B9A6F0DD921F01A70C4AFAAB739D7700C29F52C57DB17C620A8652"
        "BE5E9001A8D66AD7C17669101999024AF4D027275AC1348BB8A762D0521BC98A"
        "E247150422EA1ED409939D54DA7460CDB5F6C6B250717CBEF180EB34118E98D1"
        "19529A45D6F834566E3025E316A330EFBB77A86F0C1AB15B051AE3D428C8F8AC"
        "B70A8137150B8EEB10E183EDD19963DDD9E263E4770589EF6AA21E7F5F2FF381"
        "B539CCE3409D13CD566AFBB48D6C019181E1BCFE94B30269EDFE72FE9B6AA4BD"
        "7B5A0F1C71CFFF4C19C418E1F6EC017981BC087F2A7065B384B890D3191F2BFA",
        16,
    ),
    h_seed=b"cpauth/rfc5114-2048/h",
)

# Order-11 subgroup of Z_23^*. Only useful for arithmetic tests: log_4(9) is
# trivially known.
TOY_23 = GroupSpec(p=23, q=11, g=4, h_seed=b"", h=9)

GROUPS: Dict[str, GroupSpec] = {
    "rfc5114-1024": RFC5114_1024,
    "rfc5114-2048": RFC5114_2048,
    "toy-23": TOY_23,
}

DEFAULT_GROUP = "rfc5114-1024"

CHALLENGE_TTL = 120.0
SESSION_TTL = 3600.0

AUTH_ID_BYTES = 36
SESSION_ID_BYTES = 32

PRIMALITY_ROUNDS = 40


__all__ = [
    "GroupSpec",
    "GROUPS",
    "DEFAULT_GROUP",
    "CHALLENGE_TTL",
    "SESSION_TTL",
    "AUTH_ID_BYTES",
    "SESSION_ID_BYTES",
    "PRIMALITY_ROUNDS",
    "RFC5114_1024",
    "RFC5114_2048",
    "TOY_23",
]
