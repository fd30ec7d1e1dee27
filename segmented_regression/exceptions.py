"""
Segmented Regression 예외 정의
==============================

호출자가 실패 원인을 구분할 수 있도록 오류 종류별로 클래스를 분리합니다.

- InputValidationError: 입력 데이터 오류 (길이 불일치, 빈 입력, x 비단조 등)
- ConfigurationError: 하이퍼파라미터 오류 (λ <= 0 등)
- NumericalDegeneracyError: OLS 적합 불가 (구간 내 x가 모두 동일)
"""


class SegmentedRegressionError(Exception):
    """패키지 공통 기본 예외"""


class InputValidationError(SegmentedRegressionError, ValueError):
    """입력 데이터가 유효하지 않음"""


class ConfigurationError(SegmentedRegressionError, ValueError):
    """하이퍼파라미터 설정이 유효하지 않음"""


class NumericalDegeneracyError(SegmentedRegressionError, ArithmeticError):
    """수치적으로 정의되지 않는 적합 (예: 수직선)"""
