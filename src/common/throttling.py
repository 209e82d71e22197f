from ninja_extra.throttling import AnonRateThrottle, UserRateThrottle


class AnonDefaultThrottle(AnonRateThrottle):
    rate = "60/min"


class UserDefaultThrottle(UserRateThrottle):
    rate = "100/min"


class CartThrottle(AnonRateThrottle):
    rate = "120/min"


class WriteThrottle(UserRateThrottle):
    rate = "100/min"


class ScanThrottle(UserRateThrottle):
    # Gate scanners burst when doors open.
    rate = "600/min"
