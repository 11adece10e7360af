from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    BUYER = "buyer"
    OPERATOR = "operator"

    def __str__(self):
        return self.value


class OrgType(str, Enum):
    FARM = "FARM"
    AGRICULTURAL_COOP = "AGRICULTURAL_COOP"
    SERVICE_PROVIDER = "SERVICE_PROVIDER"
    OTHER = "OTHER"

    def __str__(self):
        return self.value


class OrgStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"

    def __str__(self):
        return self.value


class ServiceType(str, Enum):
    SPRAY = "SPRAY"
    SPREAD = "SPREAD"
    MAPPING = "MAPPING"

    def __str__(self):
        return self.value


class CropType(str, Enum):
    VINEYARD = "VINEYARD"
    OLIVE_GROVE = "OLIVE_GROVE"
    CEREAL = "CEREAL"
    VEGETABLES = "VEGETABLES"
    FRUIT = "FRUIT"
    OTHER = "OTHER"

    def __str__(self):
        return self.value


class TreatmentType(str, Enum):
    FUNGICIDE = "FUNGICIDE"
    INSECTICIDE = "INSECTICIDE"
    HERBICIDE = "HERBICIDE"
    FERTILIZER = "FERTILIZER"
    ORGANIC_FERTILIZER = "ORGANIC_FERTILIZER"
    CHEMICAL_FERTILIZER = "CHEMICAL_FERTILIZER"
    LIME = "LIME"

    def __str__(self):
        return self.value


class TerrainCondition(str, Enum):
    FLAT = "FLAT"
    HILLY = "HILLY"
    MOUNTAINOUS = "MOUNTAINOUS"

    def __str__(self):
        return self.value


class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"

    def __str__(self):
        return self.value


class JobStatus(str, Enum):
    OPEN = "OPEN"
    AWARDED = "AWARDED"
    DONE = "DONE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"

    def __str__(self):
        return self.value


class OfferStatus(str, Enum):
    OFFERED = "OFFERED"
    AWARDED = "AWARDED"
    DECLINED = "DECLINED"
    WITHDRAWN = "WITHDRAWN"

    def __str__(self):
        return self.value


class BookingStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    DONE = "DONE"
    CANCELLED = "CANCELLED"

    def __str__(self):
        return self.value


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"

    def __str__(self):
        return self.value


class ProductCategory(str, Enum):
    DRONE = "DRONE"
    SPARE_PART = "SPARE_PART"
    ACCESSORY = "ACCESSORY"
    SERVICE_PACKAGE = "SERVICE_PACKAGE"

    def __str__(self):
        return self.value


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    def __str__(self):
        return self.value


class AuditAction(str, Enum):
    REGISTER = "register"
    LOGIN = "login"
    CREATE_RATE_CARD = "create_rate_card"
    UPDATE_RATE_CARD = "update_rate_card"
    DELETE_RATE_CARD = "delete_rate_card"
    CREATE_JOB = "create_job"
    CANCEL_JOB = "cancel_job"
    SUBMIT_OFFER = "submit_offer"
    UPDATE_OFFER = "update_offer"
    WITHDRAW_OFFER = "withdraw_offer"
    ACCEPT_OFFER = "accept_offer"
    COMPLETE_MISSION = "complete_mission"
    CHECKOUT = "checkout"
    UPDATE_ORDER_STATUS = "update_order_status"

    def __str__(self):
        return self.value
