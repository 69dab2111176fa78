class SubmissionError(Exception):
    pass


class InvalidImageError(SubmissionError):
    pass


class RecognitionFailedError(SubmissionError):
    pass


class StorageUploadFailed(SubmissionError):
    pass
