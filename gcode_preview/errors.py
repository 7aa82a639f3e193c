"""
G-code Preview 예외 정의
"""


class GCodePreviewError(Exception):
    """gcode_preview 기본 예외"""
    error_code = "gcode_preview_error"


class ParseError(GCodePreviewError):
    """
    해석 불가능한 입력으로 파싱 전체가 중단됨

    부분 결과는 반환하지 않는다 (전체 성공 또는 전체 실패).
    """
    error_code = "parse_error"

    def __init__(self, line: int, reason: str):
        super().__init__(f"line {line}: {reason}")
        self.line = line
        self.reason = reason

    def to_dict(self):
        return {
            "error": self.error_code,
            "line": self.line,
            "reason": self.reason,
        }
