#%% セル1：文字列 -> 日時（順番を指定して読む）
from runlog.timespans import parse_datetime, components, update

print(parse_datetime("2017-01-20"))                  # ymd
print(parse_datetime("January 20, 2017", "mdy"))
print(parse_datetime("20/01/2017", "dmy"))
print(parse_datetime("2017-01-20 11:59:59", "ymd_hms", tz="America/New_York"))

#%% セル2：成分の取り出し・書き換え
ts = parse_datetime("2016-07-08 12:34:56", "ymd_hms")
print(components(ts))            # year, month, yday, wday(1=日曜), week, leap_year ...
print(update(ts, year=2017, hour=1))

#%% セル3：丸め
from runlog.timespans import floor_date, ceiling_date

for unit in ("hour", "day", "week", "month", "year"):
    print(unit, floor_date(ts, unit), ceiling_date(ts, unit))

#%% セル4：タイムゾーン（同じ瞬間 / 同じ時計の時刻）
from runlog.timespans import with_tz, force_tz

meeting = parse_datetime("2011-03-04 12:00:00", "ymd_hms", tz="America/Chicago")
print(with_tz(meeting, "Pacific/Auckland"))   # 同じ瞬間
print(force_tz(meeting, "Pacific/Auckland"))  # 同じ時刻表示、別の瞬間

#%% セル5：duration（正確な秒） と period（カレンダー上の長さ）
from runlog.timespans import duration, period, shift

before_dst = parse_datetime("2021-03-13 12:00:00", "ymd_hms", tz="America/Chicago")
print(shift(before_dst, duration(days=1)))  # 24時間後 -> 13:00 CDT
print(shift(before_dst, period(days=1)))     # 翌日の同じ時刻 -> 12:00 CDT
print(shift(parse_datetime("2021-01-31"), period(months=1)))  # 2021-02-28（月末に寄せる）
print(duration(years=1))                     # 365.25日

#%% セル6：Interval（開始と終了が決まった区間）
from runlog.timespans import Interval

arrive = parse_datetime("2011-06-04 12:00:00", "ymd_hms", tz="Pacific/Auckland")
leave = parse_datetime("2011-08-10 14:00:00", "ymd_hms", tz="Pacific/Auckland")
stay = Interval(arrive, leave)
other = Interval(parse_datetime("2011-07-20", tz="Pacific/Auckland"),
                 parse_datetime("2011-08-31", tz="Pacific/Auckland"))

print(stay.length, stay.time_length("weeks"))
print(stay.count(period(months=1)))          # 丸ごと入る月数
print(stay.overlaps(other), stay.intersect(other))
print(parse_datetime("2011-07-01", tz="Pacific/Auckland") in stay)

# %%
