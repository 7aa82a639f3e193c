import re
from typing import Iterator, List, Tuple

from .models import GCodeLine

# 단어 = 문자 + 숫자 (공백 생략 가능: G1X10Y5)
# 지수 표기는 지원하지 않는다 (X1E5는 X1 E5로 해석)
_WORD = re.compile(r'([A-Za-z])\s*([-+]?(?:\d+\.?\d*|\.\d+))')
# 괄호 주석 (닫히지 않으면 줄 끝까지) 또는 ";" 부터 줄 끝까지, 왼쪽부터 먼저 나온 것
_COMMENT = re.compile(r'\(([^)]*)\)?|;(.*)')
_CHECKSUM = re.compile(r'\*\d*\s*$')

COMMAND_LETTERS = ('G', 'M', 'T')


def split_lines(text: str) -> List[str]:
    """줄바꿈 정규화 후 줄 단위 분리"""
    return text.replace('\r\n', '\n').replace('\r', '\n').split('\n')


def strip_comments(line: str) -> Tuple[str, List[str]]:
    """
    주석 제거

    - ';' 부터 줄 끝까지
    - 괄호 주석 '( ... )', 닫히지 않은 '(' 는 줄 끝까지
    - 괄호 안의 ';' 는 괄호 주석의 일부

    Returns:
        (code, comments)
    """
    comments = []
    for match in _COMMENT.finditer(line):
        paren, tail = match.groups()
        comments.append((paren if paren is not None else tail).strip())
    code = _COMMENT.sub(' ', line)
    return code, [c for c in comments if c]


def tokenize(code: str) -> Tuple[List[Tuple[str, str]], List[str]]:
    """
    문자/숫자 단어 쌍으로 분리

    Returns:
        (words, bad_tokens) - words는 (대문자 letter, 숫자 문자열) 목록
    """
    words = []
    bad_tokens = []
    pos = 0
    length = len(code)
    while pos < length:
        if code[pos].isspace():
            pos += 1
            continue
        match = _WORD.match(code, pos)
        if match:
            words.append((match.group(1).upper(), match.group(2)))
            pos = match.end()
            continue
        end = pos
        while end < length and not code[end].isspace():
            end += 1
        bad_tokens.append(code[pos:end])
        pos = end
    return words, bad_tokens


def _command_code(letter: str, number: str) -> str:
    """G01 -> G1, G29.1 -> G29.1"""
    value = float(number)
    if value.is_integer():
        return f"{letter}{int(value)}"
    return f"{letter}{value:g}"


def parse_line(line: str, index: int) -> GCodeLine:
    """Parse a single G-code line."""
    raw = line.rstrip()
    code, comments = strip_comments(raw)
    code = _CHECKSUM.sub('', code)

    words, bad_tokens = tokenize(code)

    # 라인 번호 (N123) 제거
    if words and words[0][0] == 'N':
        words = words[1:]

    cmd = ""
    if words and words[0][0] in COMMAND_LETTERS:
        cmd = _command_code(*words[0])
        words = words[1:]

    params = {}
    for letter, number in words:
        params[letter] = float(number)

    return GCodeLine(
        index=index,
        raw=raw,
        cmd=cmd,
        params=params,
        comments=comments,
        bad_tokens=bad_tokens,
    )


def parse_text(text: str) -> Iterator[GCodeLine]:
    """전체 텍스트를 GCodeLine으로 순차 변환 (1-based 라인 번호)"""
    for i, line in enumerate(split_lines(text)):
        yield parse_line(line, i + 1)
