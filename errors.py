# errors.py
# Исключения сервиса. Ошибки валидации сюда не относятся:
# они возвращаются как статус-сообщение (см. logic.build_status).


class StructuredFeedbackError(Exception):
    status_code = 400
    errorcode = 'error'

    def __init__(self, message=None, errorcode=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        if errorcode:
            self.errorcode = errorcode

    def to_dict(self):
        return {'errorcode': self.errorcode, 'message': self.message}


class PermissionDenied(StructuredFeedbackError):
    status_code = 403
    errorcode = 'nopermissions'


class NotFound(StructuredFeedbackError):
    status_code = 404
    errorcode = 'notfound'


class InvalidParameter(StructuredFeedbackError):
    status_code = 400
    errorcode = 'invalidparameter'
