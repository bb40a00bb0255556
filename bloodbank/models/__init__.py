from bloodbank.models.facility import Facility
from bloodbank.models.blood_stock import BloodStock, BLOOD_GROUPS, MAX_INTEGER
from bloodbank.models.blood_request import BloodRequest
from bloodbank.models.stock_log import StockLog

__all__ = ['Facility', 'BloodStock', 'BloodRequest', 'StockLog', 'BLOOD_GROUPS', 'MAX_INTEGER']
