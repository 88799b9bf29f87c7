"""
CSV builders shared by the importer tests.
"""


CATALOG_HEADER = (
    "_id,Handle,Title,Description,Vendor,Type,Published,"
    "Option1 Name,Option1 Value,Option2 Name,Option2 Value,Option3 Name,Option3 Value,"
    "Variant SKU,Variant Weight,Variant Weight Unit,Variant Price,Variant Compare At Price,"
    "Variant Barcode,Tags,Image Src,"
    "Inventory Location: eCommerce Inventory,Inventory Location: Tour Inventory"
)


def catalog_row(
    product_id="1001",
    title="Tour Shirt",
    sku="TS-S",
    size="S",
    price="25.00",
    compare_at="",
    warehouse="5",
    tour="0",
    handle="tour-shirt",
) -> str:
    return (
        f'{product_id},{handle},{title},"Soft cotton, black",Band Co,Shirt,true,'
        f"Size,{size},,,,,"
        f"{sku},0.3,lb,{price},{compare_at},"
        f',"tour, shirt",https://cdn.example.com/ts.png,'
        f"{warehouse},{tour}"
    )


def catalog_csv(*rows: str) -> str:
    return "\n".join([CATALOG_HEADER, *rows]) + "\n"




ORDERS_HEADER = "Order #,Order Date,Name,Product ID,SKU,QTY,Gross Sales,Discounts,Net sales,Commission,Deduction,Payout"


def order_row(order="5001", order_date="2024-03-15", name="Tour Shirt - S", sku="TS-S", qty="2") -> str:
    return f"{order},{order_date},{name},1001,{sku},{qty},$50.00,$0.00,$50.00,$5.00,$0.00,$45.00"


def orders_csv(*rows: str) -> str:
    return "\n".join([ORDERS_HEADER, *rows]) + "\n"


VENUE_SALES_HEADER = "SKU,Name,Type,Sex,Size,Sold,Unit % of Total,Comp,Avg. Price,Gross Rev,% of Total"


def venue_sale_row(sku="TS-S", name="Tour Shirt", sold="3", comp="0", price="$30.00", gross="$90.00") -> str:
    return f"{sku},{name},Apparel,Unisex,S,{sold},10%,{comp},{price},{gross},12%"


def venue_sales_csv(*rows: str) -> str:
    return "\n".join([VENUE_SALES_HEADER, *rows]) + "\n"


VENUE_TOTALS_HEADER = 'Date,Venue,"City, St",Total Receipts,Total Fees,Net Receipts'


def venue_total_row(show_date="2024-04-01", venue="The Roxy", location="Los Angeles, CA",
                    total="$1,500.00", fees="$150.00", net="$1,350.00") -> str:
    return f'{show_date},{venue},"{location}","{total}","{fees}","{net}"'


def venue_totals_csv(*rows: str) -> str:
    return "\n".join([VENUE_TOTALS_HEADER, *rows]) + "\n"
